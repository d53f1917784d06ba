"""Application lifecycle API endpoints: drafts, submission and pipeline moves."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.dependencies import get_caller, require_reviewer
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.error_handling import ForbiddenError, NotFoundError
from portal_backend.core.logging import performance_logger
from portal_backend.models.application import ApplicationStatus
from portal_backend.repositories.application import ApplicationRepository
from portal_backend.schemas.application import (
    ApplicationDetail,
    ApplicationOut,
    DraftSave,
    InterviewSchedule,
    InterviewSlotOut,
    StatusChangeOut,
    StatusTransition,
)
from portal_backend.services.draft_service import DraftService
from portal_backend.services.pipeline_service import ReviewPipelineService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["applications"])


@router.put("/drafts", response_model=ApplicationDetail)
def save_draft(
    draft: DraftSave,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Autosave target: store the candidate's full current answer set.

    Answers 409 ``no_active_cycle`` when the organization is not recruiting;
    the client keeps its local copy and retries later.
    """
    with performance_logger.log_operation_time(
        "save_draft",
        user_id=str(caller.user_id),
        organization_id=str(draft.organization_id)
    ):
        application = DraftService().save_draft(
            db,
            candidate_id=caller.user_id,
            organization_id=draft.organization_id,
            subteam_id=draft.subteam_id,
            answers=draft.answers,
        )
        return ApplicationDetail.model_validate(application)


@router.get("/drafts/{organization_id}", response_model=ApplicationDetail)
def get_draft(
    organization_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Load the caller's application to the organization's active cycle."""
    application = DraftService().get_draft(db, caller.user_id, organization_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No application started for this organization"
        )
    return ApplicationDetail.model_validate(application)


@router.post("/applications/{application_id}/submit", response_model=ApplicationOut)
def submit_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Submit the caller's draft. One-way: a second call answers 409."""
    with performance_logger.log_operation_time(
        "submit_application",
        user_id=str(caller.user_id),
        application_id=str(application_id)
    ):
        application = ReviewPipelineService().submit_application(db, application_id, caller.user_id)
        return ApplicationOut.model_validate(application)


@router.get("/applications/{application_id}", response_model=ApplicationDetail)
def get_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Get an application. Candidates see only their own; reviewers never see drafts."""
    application = ApplicationRepository().get_or_raise(db, application_id)
    if caller.is_reviewer:
        if application.is_draft:
            raise NotFoundError("Application", application_id)
    elif application.candidate_id != caller.user_id:
        raise ForbiddenError("Applications are visible to their candidate only")
    return ApplicationDetail.model_validate(application)


@router.get("/me/applications", response_model=List[ApplicationOut])
def list_my_applications(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    return ApplicationRepository().list_for_candidate(db, caller.user_id)


@router.get("/cycles/{cycle_id}/applications", response_model=List[ApplicationOut])
def list_cycle_applications(
    cycle_id: UUID,
    application_status: Optional[ApplicationStatus] = Query(None, description="Filter by pipeline status"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    """Submitted applications of a cycle, newest first. Drafts are never listed."""
    if application_status is ApplicationStatus.DRAFT:
        return []
    with performance_logger.log_operation_time("list_cycle_applications", user_id=str(caller.user_id)):
        return ApplicationRepository().list_for_cycle(
            db,
            cycle_id,
            status=application_status.value if application_status else None,
            skip=skip,
            limit=limit,
        )


@router.post("/applications/{application_id}/status", response_model=ApplicationOut)
def transition_status(
    application_id: UUID,
    transition: StatusTransition,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Move an application to another pipeline stage (reviewers only)."""
    with performance_logger.log_operation_time(
        "transition_status",
        user_id=str(caller.user_id),
        application_id=str(application_id),
        new_status=transition.status.value
    ):
        application = ReviewPipelineService().transition_status(
            db, application_id, transition.status, caller, reason=transition.reason
        )
        return ApplicationOut.model_validate(application)


@router.get("/applications/{application_id}/history", response_model=List[StatusChangeOut])
def get_history(
    application_id: UUID,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    return ReviewPipelineService().get_history(db, application_id, limit=limit)


@router.post(
    "/applications/{application_id}/interviews",
    response_model=InterviewSlotOut,
    status_code=status.HTTP_201_CREATED
)
def schedule_interview(
    application_id: UUID,
    schedule: InterviewSchedule,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Book an interview; the application moves to INTERVIEW."""
    with performance_logger.log_operation_time(
        "schedule_interview",
        user_id=str(caller.user_id),
        application_id=str(application_id)
    ):
        slot = ReviewPipelineService().schedule_interview(db, application_id, schedule, caller)
        return InterviewSlotOut.model_validate(slot)
