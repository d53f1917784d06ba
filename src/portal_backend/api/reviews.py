"""Reviewer scoring and notes API endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.dependencies import get_caller, require_reviewer
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.logging import performance_logger
from portal_backend.schemas.review import NoteCreate, NoteOut, ScoreOut, ScoreSet, ScoreSummary
from portal_backend.services.dashboard_service import DashboardService
from portal_backend.services.review_service import ReviewLedgerService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["reviews"])


@router.put("/applications/{application_id}/score", response_model=ScoreOut)
def set_score(
    application_id: UUID,
    score: ScoreSet,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Record the caller's 1-5 score; resubmitting replaces it."""
    with performance_logger.log_operation_time(
        "set_score",
        user_id=str(caller.user_id),
        application_id=str(application_id)
    ):
        result = ReviewLedgerService().set_score(db, application_id, caller, score.value, score.criteria)
        return ScoreOut.model_validate(result)


@router.get("/applications/{application_id}/scores", response_model=List[ScoreOut])
def list_scores(
    application_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    return ReviewLedgerService().list_scores(db, application_id, caller)


@router.get("/applications/{application_id}/score-summary", response_model=ScoreSummary)
def get_score_summary(
    application_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    """Review count with the exact and displayed average score."""
    return DashboardService().score_summary(db, application_id)


@router.post(
    "/applications/{application_id}/notes",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED
)
def add_note(
    application_id: UUID,
    note: NoteCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    with performance_logger.log_operation_time(
        "add_note",
        user_id=str(caller.user_id),
        application_id=str(application_id)
    ):
        result = ReviewLedgerService().add_note(
            db, application_id, caller, note.content, is_private=note.is_private
        )
        return NoteOut.model_validate(result)


@router.get("/applications/{application_id}/notes", response_model=List[NoteOut])
def list_notes(
    application_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_reviewer)
):
    return ReviewLedgerService().list_notes(db, application_id, caller)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Delete a note; only its author may."""
    with performance_logger.log_operation_time("delete_note", user_id=str(caller.user_id)):
        ReviewLedgerService().delete_note(db, note_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
