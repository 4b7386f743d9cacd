"""Guest profile registration."""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from barqueue.models import Profile
from barqueue.schemas.profile import ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def register(self, data: ProfileCreate) -> Profile:
        """Create a profile. The phone is already normalized by the schema."""
        profile = Profile(name=data.name, phone=data.phone, photo_url=data.photo_url)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"Profile {profile.id} registered")
        return profile

    def get(self, profile_id: str) -> Profile:
        profile = self.db.get(Profile, profile_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
        return profile

    def update(self, profile_id: str, data: ProfileUpdate) -> Profile:
        """Edit name or photo. Existing orders keep their copied details."""
        profile = self.get(profile_id)
        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name must not be blank")
            profile.name = name
        if data.photo_url is not None:
            profile.photo_url = data.photo_url or None
        self.db.commit()
        self.db.refresh(profile)
        return profile
