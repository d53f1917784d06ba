"""Question catalog service: ordered, scoped questions per recruiting cycle."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.core.database import transaction
from portal_backend.core.error_handling import (
    EmptyContentError,
    ErrorContext,
    NotFoundError,
    OutOfRangeError,
    RetryManager,
)
from portal_backend.models.cycle import RecruitingCycle
from portal_backend.models.question import Question
from portal_backend.repositories.cycle import CycleRepository, OrganizationRepository
from portal_backend.repositories.question import QuestionRepository
from portal_backend.schemas.question import QuestionCreate, QuestionUpdate
from .ordering import plan_move, plan_remove, repack

logger = structlog.get_logger(__name__)


class QuestionCatalogService:
    """Service for inserting, editing, removing and reordering questions.

    Every mutation is one unit of work: the parent cycle row is locked, the
    partition is re-read under that lock, the new ordinals are computed from
    the fresh read and everything is written in a single commit. Transient
    store failures re-run the whole unit, so a retry never trusts state from
    a failed attempt.
    """

    # Fields an edit may clear by sending null.
    NULLABLE_FIELDS = ("description", "char_limit", "word_limit")

    def __init__(self, retry_manager: Optional[RetryManager] = None):
        self.repository = QuestionRepository()
        self.cycles = CycleRepository()
        self.organizations = OrganizationRepository()
        self.retry_manager = retry_manager or RetryManager()

    def _run(self, operation: str, func, *args):
        context = ErrorContext(operation=operation, component="question_catalog")
        return self.retry_manager.retry(func, *args, context=context)

    def _lock_cycle(self, db: Session, cycle_id: UUID) -> RecruitingCycle:
        return self.cycles.get_or_raise(db, cycle_id, for_update=True)

    def _locked_partition(self, db: Session, question: Question) -> List[Question]:
        self._lock_cycle(db, question.cycle_id)
        partition = self.repository.list_partition(
            db, question.cycle_id, question.subteam_id, for_update=True
        )
        if question not in partition:
            # Removed by a concurrent request between the lookup and the lock.
            raise NotFoundError("Question", question.id)
        return partition

    @staticmethod
    def _apply(db: Session, partition: List[Question], changes: Dict[UUID, int]) -> None:
        for question in partition:
            if question.id in changes:
                question.order = changes[question.id]
        db.flush()

    def get_question(self, db: Session, question_id: UUID) -> Question:
        return self.repository.get_or_raise(db, question_id)

    def insert_question(
        self,
        db: Session,
        cycle_id: UUID,
        question_data: QuestionCreate,
        actor_id: Optional[UUID] = None
    ) -> Question:
        """Append a question to the end of its (cycle, scope) partition.

        Raises:
            NotFoundError: If the cycle or the sub-group does not exist
        """
        def unit() -> Question:
            with transaction(db):
                cycle = self._lock_cycle(db, cycle_id)
                if question_data.subteam_id is not None:
                    subteam = self.organizations.get_subteam(db, question_data.subteam_id)
                    if subteam is None or subteam.organization_id != cycle.organization_id:
                        raise NotFoundError("Subteam", question_data.subteam_id)

                order = self.repository.next_order(db, cycle_id, question_data.subteam_id)
                question = self.repository.create(
                    db,
                    cycle_id=cycle_id,
                    subteam_id=question_data.subteam_id,
                    prompt=question_data.prompt,
                    description=question_data.description,
                    question_type=question_data.question_type.value,
                    is_required=question_data.is_required,
                    char_limit=question_data.char_limit,
                    word_limit=question_data.word_limit,
                    options=list(question_data.options),
                    order=order,
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                )
            return question

        question = self._run("insert_question", unit)
        logger.info(
            "Question inserted",
            question_id=str(question.id),
            cycle_id=str(cycle_id),
            subteam_id=str(question.subteam_id) if question.subteam_id else None,
            order=question.order
        )
        return question

    def update_question(
        self,
        db: Session,
        question_id: UUID,
        question_data: QuestionUpdate,
        actor_id: Optional[UUID] = None
    ) -> Question:
        """Edit a question's content. Ordering is never touched.

        Raises:
            NotFoundError: If the question does not exist
            EmptyContentError: If the prompt is blank or a select question loses all options
            ValueError: If options are given for a question kind that takes none
        """
        changes = {
            field: value
            for field, value in question_data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.NULLABLE_FIELDS
        }

        with transaction(db):
            question = self.repository.get_or_raise(db, question_id)

            if "prompt" in changes:
                prompt = (changes["prompt"] or "").strip()
                if not prompt:
                    raise EmptyContentError("prompt")
                changes["prompt"] = prompt

            if "options" in changes:
                options = changes["options"] or []
                if question.kind.is_choice and not options:
                    raise EmptyContentError("options")
                if not question.kind.is_choice and options:
                    raise ValueError(f"{question.kind.value} questions do not take options")
                changes["options"] = options

            changes.pop("order", None)
            self.repository.update(db, question, updated_by_id=actor_id, **changes)

        logger.info("Question updated", question_id=str(question_id), fields=sorted(changes))
        return question

    def remove_question(self, db: Session, question_id: UUID) -> None:
        """Delete a question and close the gap it leaves in its partition.

        Raises:
            NotFoundError: If the question does not exist
        """
        def unit() -> Dict[UUID, int]:
            with transaction(db):
                question = self.repository.get_or_raise(db, question_id)
                partition = self._locked_partition(db, question)
                changes = plan_remove({q.id: q.order for q in partition}, question.id)
                remaining = [q for q in partition if q.id != question.id]
                self.repository.delete(db, question)
                self._apply(db, remaining, changes)
            return changes

        changes = self._run("remove_question", unit)
        logger.info("Question removed", question_id=str(question_id), shifted=len(changes))

    def move_question(self, db: Session, question_id: UUID, target_order: int) -> Question:
        """Move a question to ``target_order`` within its partition.

        Raises:
            NotFoundError: If the question does not exist
            OutOfRangeError: If ``target_order`` is outside ``[0, N-1]``; nothing is written
        """
        def unit() -> Question:
            with transaction(db):
                question = self.repository.get_or_raise(db, question_id)
                partition = self._locked_partition(db, question)
                if not 0 <= target_order < len(partition):
                    raise OutOfRangeError("target_order", target_order, 0, len(partition) - 1)

                changes = plan_move({q.id: q.order for q in partition}, question.id, target_order)
                self._apply(db, partition, changes)
            return question

        question = self._run("move_question", unit)
        logger.info(
            "Question moved",
            question_id=str(question_id),
            target_order=target_order
        )
        return question

    def normalize_partition(
        self,
        db: Session,
        cycle_id: UUID,
        subteam_id: Optional[UUID] = None
    ) -> int:
        """Repack a partition to 0..N-1, keeping its relative order.

        Returns:
            Number of questions whose ordinal changed
        """
        def unit() -> int:
            with transaction(db):
                self._lock_cycle(db, cycle_id)
                partition = self.repository.list_partition(db, cycle_id, subteam_id, for_update=True)
                changes = repack([q.id for q in partition], {q.id: q.order for q in partition})
                self._apply(db, partition, changes)
            return len(changes)

        repaired = self._run("normalize_partition", unit)
        if repaired:
            logger.warning(
                "Question partition repacked",
                cycle_id=str(cycle_id),
                subteam_id=str(subteam_id) if subteam_id else None,
                repaired=repaired
            )
        return repaired

    def list_partition(
        self,
        db: Session,
        cycle_id: UUID,
        subteam_id: Optional[UUID] = None
    ) -> List[Question]:
        """Questions of one (cycle, scope) partition in ordinal order."""
        self.cycles.get_or_raise(db, cycle_id)
        return self.repository.list_partition(db, cycle_id, subteam_id)

    def list_visible(
        self,
        db: Session,
        cycle_id: UUID,
        subteam_id: Optional[UUID] = None
    ) -> List[Question]:
        """Questions shown to a candidate: general ones, then the sub-group's."""
        self.cycles.get_or_raise(db, cycle_id)
        return self.repository.list_visible(db, cycle_id, subteam_id)
