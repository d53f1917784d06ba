"""Dashboard API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal_backend.auth.dependencies import get_caller, require_reviewer
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.logging import performance_logger
from portal_backend.schemas.review import CandidateStats, StageCounts
from portal_backend.services.dashboard_service import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get("/organizations/{organization_id}/stage-counts", response_model=StageCounts)
def get_stage_counts(
    organization_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    """Live per-status counts of the active cycle's submitted applications."""
    with performance_logger.log_operation_time(
        "stage_counts",
        user_id=str(caller.user_id),
        organization_id=str(organization_id)
    ):
        return DashboardService().stage_counts(db, organization_id)


@router.get("/me/stats", response_model=CandidateStats)
def get_candidate_stats(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    return DashboardService().candidate_stats(db, caller.user_id)
