"""Pydantic schemas for candidate profiles."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileUpsert(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: Optional[str] = Field(None, max_length=255, description="Contact email")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Invalid email address")
        return v


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    name: str
    email: Optional[str]
    resume_url: Optional[str]
    updated_at: datetime
