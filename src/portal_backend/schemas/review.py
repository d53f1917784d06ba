"""Pydantic schemas for scores, notes and dashboards."""

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ScoreSet(BaseModel):
    """Reviewer score submission.

    Range checks happen in the ledger so the API and in-process callers
    fail the same way.
    """

    value: int
    criteria: Optional[Dict[str, int]] = None


class ScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    application_id: UUID
    reviewer_id: UUID
    overall_score: int
    criteria: Optional[Dict[str, int]]
    updated_at: datetime


class NoteCreate(BaseModel):
    content: str = Field(..., description="Note text; must not be blank")
    is_private: bool = Field(default=False, description="Visible only to its author")


class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    author_id: UUID
    content: str
    is_private: bool
    created_at: datetime


class ScoreSummary(BaseModel):
    """Aggregate of the current per-reviewer scores of an application."""

    application_id: UUID
    review_count: int
    mean: Optional[float] = Field(None, description="Exact mean, None when nobody has scored")
    average: Optional[int] = Field(None, description="Mean rounded half-up for display")


class StageCounts(BaseModel):
    """Live partition of a cycle's non-draft applications by status."""

    organization_id: UUID
    cycle_id: Optional[UUID]
    counts: Dict[str, int]
    total: int


class CandidateStats(BaseModel):
    """Candidate dashboard counters."""

    candidate_id: UUID
    drafts: int
    submitted: int
    interviews: int
