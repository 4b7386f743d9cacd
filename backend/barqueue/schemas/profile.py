"""Profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from barqueue.core.phone import normalize_phone


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=1, max_length=32)
    photo_url: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("phone")
    @classmethod
    def normalize(cls, v: str) -> str:
        normalized = normalize_phone(v)
        if not normalized:
            raise ValueError("phone must contain digits")
        return normalized


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    photo_url: Optional[str] = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
