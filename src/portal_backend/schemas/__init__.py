"""Pydantic schemas for data validation and serialization."""

from .question import QuestionCreate, QuestionUpdate, QuestionMove, QuestionResponse
from .application import (
    DraftSave, ApplicationOut, ApplicationDetail, StatusTransition,
    StatusChangeOut, InterviewSchedule, InterviewSlotOut,
)
from .review import ScoreSet, ScoreOut, NoteCreate, NoteOut, ScoreSummary, StageCounts, CandidateStats
from .cycle import OrganizationCreate, SubteamCreate, CycleCreate, CycleTimelineUpdate, CycleOut
from .profile import ProfileUpsert, ProfileOut

__all__ = [
    "QuestionCreate", "QuestionUpdate", "QuestionMove", "QuestionResponse",
    "DraftSave", "ApplicationOut", "ApplicationDetail", "StatusTransition",
    "StatusChangeOut", "InterviewSchedule", "InterviewSlotOut",
    "ScoreSet", "ScoreOut", "NoteCreate", "NoteOut", "ScoreSummary", "StageCounts", "CandidateStats",
    "OrganizationCreate", "SubteamCreate", "CycleCreate", "CycleTimelineUpdate", "CycleOut",
    "ProfileUpsert", "ProfileOut",
]
