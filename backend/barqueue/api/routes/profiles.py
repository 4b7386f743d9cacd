"""Guest registration and profile routes."""

from fastapi import APIRouter, Request

from barqueue.core.rate_limit import limiter
from barqueue.core.session import RequireGuest
from barqueue.db.session import DbSession
from barqueue.schemas.profile import ProfileCreate, ProfileResponse, ProfileUpdate
from barqueue.services.profile_service import ProfileService

router = APIRouter()


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
@limiter.limit("10/minute")
def register_profile(request: Request, db: DbSession, data: ProfileCreate):
    """Register a guest. The client keeps the returned id for later requests."""
    return ProfileService(db).register(data)


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
def get_profile(db: DbSession, profile_id: str):
    return ProfileService(db).get(profile_id)


@router.patch("/profiles/{profile_id}", response_model=ProfileResponse)
def update_profile(db: DbSession, profile_id: str, data: ProfileUpdate):
    """Change name or photo URL (e.g. after /upload-avatar)."""
    return ProfileService(db).update(profile_id, data)


@router.get("/me", response_model=ProfileResponse)
def current_guest(db: DbSession, guest: RequireGuest):
    """Resolve the guest session; 401 with a redirect hint if unregistered."""
    return ProfileService(db).get(guest.profile_id)
