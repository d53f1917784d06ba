"""Service layer for business logic."""

from .question_catalog import QuestionCatalogService
from .draft_service import DraftService
from .pipeline_service import ReviewPipelineService
from .review_service import ReviewLedgerService
from .dashboard_service import DashboardService
from .cycle_service import CycleService
from .profile_service import ProfileService

__all__ = [
    "QuestionCatalogService",
    "DraftService",
    "ReviewPipelineService",
    "ReviewLedgerService",
    "DashboardService",
    "CycleService",
    "ProfileService",
]
