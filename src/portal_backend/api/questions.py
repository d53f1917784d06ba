"""Question catalog API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.dependencies import get_caller, require_admin
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.logging import performance_logger
from portal_backend.schemas.question import QuestionCreate, QuestionMove, QuestionResponse, QuestionUpdate
from portal_backend.services.question_catalog import QuestionCatalogService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["questions"])


@router.get("/cycles/{cycle_id}/questions", response_model=List[QuestionResponse])
def list_questions(
    cycle_id: UUID,
    subteam_id: Optional[UUID] = Query(None, description="Sub-group scope; general questions when omitted"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """List one (cycle, scope) partition in ordinal order."""
    with performance_logger.log_operation_time("list_questions", user_id=str(caller.user_id)):
        return QuestionCatalogService().list_partition(db, cycle_id, subteam_id)


@router.get("/cycles/{cycle_id}/questions/visible", response_model=List[QuestionResponse])
def list_visible_questions(
    cycle_id: UUID,
    subteam_id: Optional[UUID] = Query(None, description="Sub-group chosen by the candidate"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Questions a candidate sees on the form: general first, then the sub-group's."""
    with performance_logger.log_operation_time("list_visible_questions", user_id=str(caller.user_id)):
        return QuestionCatalogService().list_visible(db, cycle_id, subteam_id)


@router.post(
    "/cycles/{cycle_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED
)
def insert_question(
    cycle_id: UUID,
    question_data: QuestionCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Append a question to the end of its partition."""
    with performance_logger.log_operation_time(
        "insert_question",
        user_id=str(caller.user_id),
        cycle_id=str(cycle_id)
    ):
        return QuestionCatalogService().insert_question(db, cycle_id, question_data, actor_id=caller.user_id)


@router.patch("/questions/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: UUID,
    question_data: QuestionUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    with performance_logger.log_operation_time("update_question", user_id=str(caller.user_id)):
        return QuestionCatalogService().update_question(db, question_id, question_data, actor_id=caller.user_id)


@router.post("/questions/{question_id}/move", response_model=QuestionResponse)
def move_question(
    question_id: UUID,
    move: QuestionMove,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Move a question within its partition; the questions in between shift by one."""
    with performance_logger.log_operation_time(
        "move_question",
        user_id=str(caller.user_id),
        question_id=str(question_id),
        target_order=move.target_order
    ):
        return QuestionCatalogService().move_question(db, question_id, move.target_order)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_question(
    question_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    with performance_logger.log_operation_time("remove_question", user_id=str(caller.user_id)):
        QuestionCatalogService().remove_question(db, question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/cycles/{cycle_id}/questions/normalize")
def normalize_questions(
    cycle_id: UUID,
    subteam_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Repair tool: repack a partition's ordinals to 0..N-1."""
    with performance_logger.log_operation_time("normalize_questions", user_id=str(caller.user_id)):
        repaired = QuestionCatalogService().normalize_partition(db, cycle_id, subteam_id)
    return {"cycle_id": str(cycle_id), "repaired": repaired}
