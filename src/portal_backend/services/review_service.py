"""Scoring and annotation ledger for reviewers."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.models import Caller
from portal_backend.core.config import settings
from portal_backend.core.database import transaction
from portal_backend.core.error_handling import (
    EmptyContentError,
    ErrorContext,
    ForbiddenError,
    OutOfRangeError,
    RetryManager,
)
from portal_backend.models.application import Application
from portal_backend.models.review import ApplicationScore, ReviewNote, SCORE_MAX, SCORE_MIN
from portal_backend.repositories.application import ApplicationRepository
from portal_backend.repositories.review import NoteRepository, ScoreRepository

logger = structlog.get_logger(__name__)


def validate_score(field: str, value) -> int:
    """Scores are whole numbers on the fixed scale; bools are not scores.

    Raises:
        OutOfRangeError: If the value is not an integer within the scale
    """
    if isinstance(value, bool) or not isinstance(value, int) or not SCORE_MIN <= value <= SCORE_MAX:
        raise OutOfRangeError(field, value, SCORE_MIN, SCORE_MAX)
    return value


class ReviewLedgerService:
    """Service for per-reviewer scores and review notes."""

    def __init__(self, retry_manager: Optional[RetryManager] = None):
        self.applications = ApplicationRepository()
        self.scores = ScoreRepository()
        self.notes = NoteRepository()
        self.retry_manager = retry_manager or RetryManager()

    def _reviewable_application(self, db: Session, application_id: UUID, caller: Caller) -> Application:
        if not caller.is_reviewer:
            raise ForbiddenError("Only reviewers can score or annotate applications")
        application = self.applications.get_or_raise(db, application_id)
        if application.is_draft:
            raise ForbiddenError("Draft applications are not open for review")
        return application

    def set_score(
        self,
        db: Session,
        application_id: UUID,
        caller: Caller,
        value: int,
        criteria: Optional[Dict[str, int]] = None
    ) -> ApplicationScore:
        """Record the caller's score, replacing any previous one.

        Range checks run before anything is read or written, so a rejected
        score never creates a row.

        Raises:
            OutOfRangeError: If the score or a criterion score is outside 1-5
            ForbiddenError: If the caller is not a reviewer or the application is a draft
            NotFoundError: If the application does not exist
        """
        validate_score("value", value)
        if criteria:
            criteria = {name: validate_score(f"criteria.{name}", score) for name, score in criteria.items()}

        def unit() -> ApplicationScore:
            with transaction(db):
                self._reviewable_application(db, application_id, caller)
                score = self.scores.upsert(db, application_id, caller.user_id, value, criteria or None)
            return score

        score = self.retry_manager.retry(
            unit,
            context=ErrorContext(operation="set_score", component="review_ledger", user_id=str(caller.user_id))
        )
        logger.info(
            "Score recorded",
            application_id=str(application_id),
            reviewer_id=str(caller.user_id),
            score=value
        )
        return score

    def list_scores(self, db: Session, application_id: UUID, caller: Caller) -> List[ApplicationScore]:
        self._reviewable_application(db, application_id, caller)
        return self.scores.list_for_application(db, application_id)

    def add_note(
        self,
        db: Session,
        application_id: UUID,
        caller: Caller,
        content: str,
        is_private: bool = False
    ) -> ReviewNote:
        """Append a note authored by the caller.

        Raises:
            EmptyContentError: If the note is blank after trimming
            OutOfRangeError: If the note is longer than ``note_max_length``
            ForbiddenError: If the caller is not a reviewer or the application is a draft
            NotFoundError: If the application does not exist
        """
        text = (content or "").strip()
        if not text:
            raise EmptyContentError("content")
        if len(text) > settings.note_max_length:
            raise OutOfRangeError("content length", len(text), 1, settings.note_max_length)

        with transaction(db):
            self._reviewable_application(db, application_id, caller)
            note = self.notes.create(
                db,
                application_id=application_id,
                author_id=caller.user_id,
                content=text,
                is_private=is_private,
            )

        logger.info(
            "Review note added",
            application_id=str(application_id),
            note_id=str(note.id),
            author_id=str(caller.user_id),
            is_private=is_private
        )
        return note

    def delete_note(self, db: Session, note_id: UUID, caller: Caller) -> None:
        """Delete a note. Only its author may do so.

        Raises:
            NotFoundError: If the note does not exist
            ForbiddenError: If the caller is not the note's author
        """
        with transaction(db):
            note = self.notes.get_or_raise(db, note_id)
            if note.author_id != caller.user_id:
                logger.warning(
                    "Note deletion by non-author refused",
                    note_id=str(note_id),
                    author_id=str(note.author_id),
                    caller_id=str(caller.user_id)
                )
                raise ForbiddenError("Only the author can delete this note")
            self.notes.delete(db, note)

        logger.info("Review note deleted", note_id=str(note_id), author_id=str(caller.user_id))

    def list_notes(self, db: Session, application_id: UUID, caller: Caller) -> List[ReviewNote]:
        """Notes newest first; other reviewers' private notes are hidden."""
        self._reviewable_application(db, application_id, caller)
        return self.notes.list_for_application(db, application_id, viewer_id=caller.user_id)
