"""Pydantic schemas for organizations and recruiting cycles."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; offset-carrying input is converted to match."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class OrganizationCreate(BaseModel):
    slug: str = Field(..., pattern=r"^[a-z0-9-]+$", max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=255)


class SubteamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    open_positions: Optional[int] = Field(None, ge=0)


class CycleCreate(BaseModel):
    """Schema for creating a recruiting cycle."""

    name: str = Field(..., min_length=1, max_length=100)
    semester: Optional[str] = Field(None, pattern=r"^\d{4}-(Spring|Fall)$")
    application_open_date: datetime
    application_deadline: datetime
    review_deadline: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    allow_late_submissions: bool = False
    require_resume: bool = False
    is_active: bool = False

    @field_validator(
        "application_open_date", "application_deadline", "review_deadline", "decision_date"
    )
    @classmethod
    def normalize_timezone(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_timeline(self):
        if self.application_deadline <= self.application_open_date:
            raise ValueError("application_deadline must be after application_open_date")
        if self.review_deadline and self.review_deadline < self.application_deadline:
            raise ValueError("review_deadline cannot precede application_deadline")
        if self.decision_date and self.decision_date < self.application_deadline:
            raise ValueError("decision_date cannot precede application_deadline")
        return self


class CycleTimelineUpdate(BaseModel):
    """Timeline edits; unset fields are left unchanged."""

    application_open_date: Optional[datetime] = None
    application_deadline: Optional[datetime] = None
    review_deadline: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    allow_late_submissions: Optional[bool] = None

    @field_validator(
        "application_open_date", "application_deadline", "review_deadline", "decision_date"
    )
    @classmethod
    def normalize_timezone(cls, v):
        return to_naive_utc(v)


class CycleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    semester: Optional[str]
    application_open_date: datetime
    application_deadline: datetime
    review_deadline: Optional[datetime]
    decision_date: Optional[datetime]
    is_active: bool
    allow_late_submissions: bool
    require_resume: bool
