"""Repository pattern implementations for data access."""

from .base import BaseRepository
from .cycle import CycleRepository, OrganizationRepository
from .question import QuestionRepository
from .application import ApplicationRepository
from .review import ScoreRepository, NoteRepository
from .profile import ProfileRepository

__all__ = [
    "BaseRepository",
    "CycleRepository",
    "OrganizationRepository",
    "QuestionRepository",
    "ApplicationRepository",
    "ScoreRepository",
    "NoteRepository",
    "ProfileRepository",
]
