"""Pydantic schemas for application questions."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal_backend.models.question import QuestionType


def _clean_options(options: List[str]) -> List[str]:
    cleaned = []
    for option in options:
        label = option.strip()
        if label and label not in cleaned:
            cleaned.append(label)
    return cleaned


class QuestionBase(BaseModel):
    """Base question schema with common fields."""

    prompt: str = Field(..., min_length=1, max_length=500, description="Question text shown to candidates")
    description: Optional[str] = Field(None, max_length=500, description="Helper text under the prompt")
    question_type: QuestionType = Field(default=QuestionType.LONG_TEXT, description="Answer kind")
    is_required: bool = Field(default=False, description="Whether the question must be answered")
    char_limit: Optional[int] = Field(None, ge=0, le=10000, description="Maximum characters for text answers")
    word_limit: Optional[int] = Field(None, ge=0, le=2000, description="Maximum words for text answers")
    options: List[str] = Field(default_factory=list, description="Labels for select questions")

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Prompt must not be blank")
        return v.strip()

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        return _clean_options(v)

    @model_validator(mode="after")
    def validate_options_for_type(self):
        """Select questions need options; other kinds must not carry any."""
        if self.question_type.is_choice and not self.options:
            raise ValueError(f"{self.question_type.value} questions require at least one option")
        if not self.question_type.is_choice and self.options:
            raise ValueError(f"{self.question_type.value} questions do not take options")
        return self


class QuestionCreate(QuestionBase):
    """Schema for inserting a question into a catalog partition."""

    subteam_id: Optional[UUID] = Field(None, description="Sub-group scope; None for general questions")


class QuestionUpdate(BaseModel):
    """Schema for editing a question; ordering is untouched."""

    prompt: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=500)
    is_required: Optional[bool] = None
    char_limit: Optional[int] = Field(None, ge=0, le=10000)
    word_limit: Optional[int] = Field(None, ge=0, le=2000)
    options: Optional[List[str]] = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _clean_options(v)


class QuestionMove(BaseModel):
    """Schema for moving a question to another ordinal."""

    target_order: int = Field(..., description="Destination ordinal within the question's partition")


class QuestionResponse(QuestionBase):
    """Schema for question response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cycle_id: UUID
    subteam_id: Optional[UUID]
    order: int
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def validate_options_for_type(self):
        return self
