"""Guest session context.

Guests have no accounts. After registering, the client keeps its profile
id and sends it back in the ``X-Profile-Id`` header. There is no server-side
verification: knowing an id is enough. The header only spares guests from
registering again and pre-fills their orders.

Routes that act on behalf of a guest depend on ``RequireGuest``. When the
header is missing or the profile is unknown the request fails with 401 and
a ``redirect`` hint pointing at registration.
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from barqueue.db.session import get_db

PROFILE_HEADER = "X-Profile-Id"
REGISTRATION_PATH = "/register"


@dataclass(frozen=True)
class GuestSession:
    """Identity of the guest making the request."""

    profile_id: str
    name: str
    phone: str
    photo_url: Optional[str] = None


class RegistrationRequired(HTTPException):
    def __init__(self, message: str = "Guest registration required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "reason": "registration_required",
                "message": message,
                "redirect": REGISTRATION_PATH,
            },
        )


def load_guest_session(db: Session, profile_id: Optional[str]) -> GuestSession:
    """Load the guest's profile or raise ``RegistrationRequired``."""
    from barqueue.models import Profile

    if not profile_id:
        raise RegistrationRequired()
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise RegistrationRequired("Unknown profile, please register again")
    return GuestSession(
        profile_id=profile.id,
        name=profile.name,
        phone=profile.phone,
        photo_url=profile.photo_url,
    )


def require_guest(
    db: Session = Depends(get_db),
    x_profile_id: Optional[str] = Header(None, alias=PROFILE_HEADER),
) -> GuestSession:
    return load_guest_session(db, x_profile_id)


def optional_guest(
    db: Session = Depends(get_db),
    x_profile_id: Optional[str] = Header(None, alias=PROFILE_HEADER),
) -> Optional[GuestSession]:
    if not x_profile_id:
        return None
    try:
        return load_guest_session(db, x_profile_id)
    except RegistrationRequired:
        return None


RequireGuest = Annotated[GuestSession, Depends(require_guest)]
OptionalGuest = Annotated[Optional[GuestSession], Depends(optional_guest)]
