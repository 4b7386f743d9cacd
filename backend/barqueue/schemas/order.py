"""Order schemas."""

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    """Guest order submission. Identity comes from the guest session."""

    drink_id: int = Field(..., gt=0)
