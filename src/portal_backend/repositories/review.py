"""Score and note repositories for database operations."""

from typing import Optional, List, Dict
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from portal_backend.models.review import ApplicationScore, ReviewNote
from .base import BaseRepository

logger = structlog.get_logger(__name__)


class ScoreRepository(BaseRepository[ApplicationScore]):
    """Repository for per-reviewer application scores."""

    def __init__(self):
        super().__init__(ApplicationScore)

    def get_for_reviewer(
        self,
        db: Session,
        application_id: UUID,
        reviewer_id: UUID
    ) -> Optional[ApplicationScore]:
        return (
            db.query(ApplicationScore)
            .filter(
                ApplicationScore.application_id == application_id,
                ApplicationScore.reviewer_id == reviewer_id
            )
            .first()
        )

    def upsert(
        self,
        db: Session,
        application_id: UUID,
        reviewer_id: UUID,
        overall_score: int,
        criteria: Optional[Dict[str, int]] = None
    ) -> ApplicationScore:
        """Write the reviewer's score, replacing their previous one."""
        score = self.get_for_reviewer(db, application_id, reviewer_id)
        if score is not None:
            score.overall_score = overall_score
            score.criteria = criteria
            db.flush()
            return score

        try:
            with db.begin_nested():
                score = ApplicationScore(
                    application_id=application_id,
                    reviewer_id=reviewer_id,
                    overall_score=overall_score,
                    criteria=criteria,
                )
                db.add(score)
                db.flush()
        except IntegrityError:
            # Same reviewer scored concurrently: overwrite the row that won.
            score = self.get_for_reviewer(db, application_id, reviewer_id)
            if score is None:
                raise
            score.overall_score = overall_score
            score.criteria = criteria
            db.flush()
        return score

    def list_for_application(self, db: Session, application_id: UUID) -> List[ApplicationScore]:
        return (
            db.query(ApplicationScore)
            .filter(ApplicationScore.application_id == application_id)
            .order_by(ApplicationScore.created_at)
            .all()
        )

    def values_for_applications(self, db: Session, application_ids: List[UUID]) -> Dict[UUID, List[int]]:
        """Current score values grouped by application."""
        values: Dict[UUID, List[int]] = {application_id: [] for application_id in application_ids}
        if not application_ids:
            return values
        rows = (
            db.query(ApplicationScore.application_id, ApplicationScore.overall_score)
            .filter(ApplicationScore.application_id.in_(application_ids))
            .all()
        )
        for application_id, overall_score in rows:
            values[application_id].append(overall_score)
        return values


class NoteRepository(BaseRepository[ReviewNote]):
    """Repository for append-only review notes."""

    def __init__(self):
        super().__init__(ReviewNote)

    def list_for_application(
        self,
        db: Session,
        application_id: UUID,
        viewer_id: Optional[UUID] = None
    ) -> List[ReviewNote]:
        """Notes newest first; private notes only appear to their author."""
        query = db.query(ReviewNote).filter(ReviewNote.application_id == application_id)
        if viewer_id is not None:
            query = query.filter(
                (ReviewNote.is_private.is_(False)) | (ReviewNote.author_id == viewer_id)
            )
        return query.order_by(ReviewNote.created_at.desc()).all()
