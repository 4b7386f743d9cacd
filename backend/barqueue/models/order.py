"""Drink order model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from barqueue.core.timeutils import utcnow
from barqueue.db.base import Base


class OrderStatus(str, Enum):
    """Lifecycle status of an order. Only ever advances NEW -> READY."""

    NEW = "new"
    READY = "ready"


class Order(Base):
    """One guest's request for one drink.

    Name, phone and photo are copied from the profile at creation time so
    later profile edits do not rewrite order history. ``reminded_at`` is a
    timestamp rather than a status value.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_status_created_at", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    drink_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("drinks.id", ondelete="SET NULL"), nullable=True
    )
    drink_name: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        default=OrderStatus.NEW,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    ready_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reminded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    profile: Mapped[Optional["Profile"]] = relationship("Profile", back_populates="orders")
    drink: Mapped[Optional["Drink"]] = relationship("Drink")

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status.value if self.status else None} drink={self.drink_name!r}>"


# Forward references
from barqueue.models.profile import Profile  # noqa: E402
from barqueue.models.drink import Drink  # noqa: E402
