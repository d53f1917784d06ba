"""Database models for the recruiting portal."""

from .organization import Organization, Subteam
from .cycle import RecruitingCycle
from .question import Question, QuestionType
from .application import (
    Application,
    ApplicationResponse,
    ApplicationStatus,
    PIPELINE_STATUSES,
    TERMINAL_STATUSES,
)
from .review import ApplicationScore, ReviewNote
from .status_change import StatusChange, ActorType
from .interview import InterviewSlot
from .profile import CandidateProfile

__all__ = [
    "Organization", "Subteam", "RecruitingCycle", "Question", "QuestionType",
    "Application", "ApplicationResponse", "ApplicationStatus", "PIPELINE_STATUSES",
    "TERMINAL_STATUSES", "ApplicationScore", "ReviewNote", "StatusChange",
    "ActorType", "InterviewSlot", "CandidateProfile",
]
