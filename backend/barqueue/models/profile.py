"""Returning guest profile model."""

from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from barqueue.db.base import Base, CreatedAtMixin


def _new_profile_id() -> str:
    return uuid.uuid4().hex


class Profile(Base, CreatedAtMixin):
    """A guest's saved identity, created once at registration."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_profile_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    orders: Mapped[List["Order"]] = relationship("Order", back_populates="profile")


from barqueue.models.order import Order  # noqa: E402
