"""Drink menu schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DrinkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    ingredients: Optional[str] = None
    available: bool = True


class DrinkAvailabilityUpdate(BaseModel):
    """Set availability explicitly, or omit ``available`` to toggle."""

    available: Optional[bool] = None


class DrinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    ingredients: Optional[str] = None
    available: bool
