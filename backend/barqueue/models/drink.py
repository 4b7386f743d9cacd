"""Drink menu model."""

from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from barqueue.db.base import Base


class Drink(Base):
    """A menu item. Staff toggle ``available`` when a drink runs out."""

    __tablename__ = "drinks"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ingredients: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1", nullable=False)
