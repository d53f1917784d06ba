"""Question catalog repository for database operations."""

from typing import Optional, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, Query

from portal_backend.models.question import Question
from .base import BaseRepository


class QuestionRepository(BaseRepository[Question]):
    """Repository for Question operations, scoped by (cycle, scope) partition."""

    def __init__(self):
        super().__init__(Question)

    def _partition(self, db: Session, cycle_id: UUID, subteam_id: Optional[UUID]) -> Query:
        query = db.query(Question).filter(Question.cycle_id == cycle_id)
        if subteam_id is None:
            return query.filter(Question.subteam_id.is_(None))
        return query.filter(Question.subteam_id == subteam_id)

    def list_partition(
        self,
        db: Session,
        cycle_id: UUID,
        subteam_id: Optional[UUID] = None,
        for_update: bool = False
    ) -> List[Question]:
        """Get the questions of one partition in ordinal order.

        With ``for_update`` the rows stay locked until the surrounding
        transaction ends, which serialises concurrent reorderings of the
        same partition on databases with row locks.
        """
        query = self._partition(db, cycle_id, subteam_id).order_by(Question.order, Question.created_at)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.all()

    def next_order(self, db: Session, cycle_id: UUID, subteam_id: Optional[UUID] = None) -> int:
        """Ordinal for a question appended to the partition."""
        current_max = (
            self._partition(db, cycle_id, subteam_id)
            .with_entities(func.max(Question.order))
            .scalar()
        )
        return 0 if current_max is None else current_max + 1

    def list_visible(
        self,
        db: Session,
        cycle_id: UUID,
        subteam_id: Optional[UUID] = None
    ) -> List[Question]:
        """Questions a candidate sees: general ones, then the chosen sub-group's."""
        questions = self.list_partition(db, cycle_id, None)
        if subteam_id is not None:
            questions.extend(self.list_partition(db, cycle_id, subteam_id))
        return questions

    def get_many_for_cycle(self, db: Session, cycle_id: UUID, question_ids: List[UUID]) -> List[Question]:
        """Resolve ids to questions of the given cycle, dropping unknown ids."""
        if not question_ids:
            return []
        return (
            db.query(Question)
            .filter(Question.cycle_id == cycle_id, Question.id.in_(question_ids))
            .all()
        )
