"""Pydantic schemas for applications, drafts and pipeline transitions."""

from datetime import datetime
from typing import Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal_backend.models.application import ApplicationStatus
from .cycle import to_naive_utc

AnswerValue = Union[str, List[str], None]


class DraftSave(BaseModel):
    """Full current answer set of a draft, as sent by the autosave client."""

    organization_id: UUID = Field(..., description="Organization whose active cycle is applied to")
    subteam_id: Optional[UUID] = Field(None, description="Chosen sub-group, if any")
    answers: Dict[str, AnswerValue] = Field(
        default_factory=dict,
        description="Answers keyed by question id"
    )


class ResponseOut(BaseModel):
    """Schema for a stored answer."""

    model_config = ConfigDict(from_attributes=True)

    question_id: UUID
    text_response: Optional[str]
    selected_options: List[str]
    file_url: Optional[str]
    updated_at: datetime


class ApplicationOut(BaseModel):
    """Schema for application response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    candidate_id: UUID
    cycle_id: UUID
    subteam_id: Optional[UUID]
    status: ApplicationStatus
    completion_percent: int = Field(ge=0, le=100)
    last_saved_at: datetime
    submitted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class ApplicationDetail(ApplicationOut):
    """Application with its answers."""

    responses: List[ResponseOut] = Field(default_factory=list)


class StatusTransition(BaseModel):
    """Schema for a reviewer-driven status change."""

    status: ApplicationStatus
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ApplicationStatus) -> ApplicationStatus:
        if v is ApplicationStatus.DRAFT:
            raise ValueError("Applications cannot be moved back to DRAFT")
        return v


class StatusChangeOut(BaseModel):
    """Schema for an audited transition."""

    model_config = ConfigDict(from_attributes=True)

    from_status: str
    to_status: str
    actor_id: Optional[UUID]
    actor_type: str
    reason: Optional[str]
    created_at: datetime


class InterviewSchedule(BaseModel):
    """Schema for scheduling an interview."""

    start_time: datetime
    end_time: datetime
    location: Optional[str] = Field(None, max_length=200)
    virtual_link: Optional[str] = Field(None, max_length=1024)
    notes: Optional[str] = Field(None, max_length=1000)
    interviewer_ids: List[UUID] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("Interview end_time must be after start_time")
        return self


class InterviewSlotOut(BaseModel):
    """Schema for a scheduled interview."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: Optional[UUID]
    start_time: datetime
    end_time: datetime
    location: Optional[str]
    virtual_link: Optional[str]
    notes: Optional[str]
