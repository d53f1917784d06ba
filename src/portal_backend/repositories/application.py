"""Application repository for database operations."""

from datetime import datetime
from typing import Optional, List, Dict, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from portal_backend.models.application import Application, ApplicationResponse, ApplicationStatus
from portal_backend.models.cycle import RecruitingCycle
from portal_backend.models.status_change import StatusChange, ActorType
from .base import BaseRepository

logger = structlog.get_logger(__name__)


class ApplicationRepository(BaseRepository[Application]):
    """Repository for Application and ApplicationResponse operations."""

    def __init__(self):
        super().__init__(Application)

    def get_for_candidate_cycle(
        self,
        db: Session,
        candidate_id: UUID,
        cycle_id: UUID
    ) -> Optional[Application]:
        """Get the candidate's application to a cycle."""
        return (
            db.query(Application)
            .filter(
                Application.candidate_id == candidate_id,
                Application.cycle_id == cycle_id
            )
            .first()
        )

    def get_or_create(
        self,
        db: Session,
        candidate_id: UUID,
        cycle_id: UUID,
        **defaults
    ) -> Tuple[Application, bool]:
        """Find or create the (candidate, cycle) application.

        The insert runs inside a savepoint; when a concurrent request wins the
        unique (candidate, cycle) race, only the savepoint is rolled back and
        the winner's row is returned.

        Returns:
            Tuple of (application, created)
        """
        application = self.get_for_candidate_cycle(db, candidate_id, cycle_id)
        if application is not None:
            return application, False

        try:
            with db.begin_nested():
                application = Application(candidate_id=candidate_id, cycle_id=cycle_id, **defaults)
                db.add(application)
                db.flush()
        except IntegrityError:
            logger.info(
                "Concurrent application insert detected, reusing existing row",
                candidate_id=str(candidate_id),
                cycle_id=str(cycle_id)
            )
            application = self.get_for_candidate_cycle(db, candidate_id, cycle_id)
            if application is None:
                raise
            return application, False

        logger.info(
            "Application created",
            application_id=str(application.id),
            candidate_id=str(candidate_id),
            cycle_id=str(cycle_id)
        )
        return application, True

    def get_responses(self, db: Session, application_id: UUID) -> Dict[UUID, ApplicationResponse]:
        """Responses of an application keyed by question id."""
        responses = (
            db.query(ApplicationResponse)
            .filter(ApplicationResponse.application_id == application_id)
            .all()
        )
        return {response.question_id: response for response in responses}

    def upsert_response(
        self,
        db: Session,
        application_id: UUID,
        question_id: UUID,
        text_response: Optional[str],
        selected_options: List[str],
        file_url: Optional[str],
        existing: Optional[ApplicationResponse] = None
    ) -> ApplicationResponse:
        """Write the response for (application, question), overwriting any previous one."""
        response = existing
        if response is None:
            response = (
                db.query(ApplicationResponse)
                .filter(
                    ApplicationResponse.application_id == application_id,
                    ApplicationResponse.question_id == question_id
                )
                .first()
            )

        if response is None:
            response = ApplicationResponse(application_id=application_id, question_id=question_id)
            db.add(response)

        response.text_response = text_response
        response.selected_options = list(selected_options)
        response.file_url = file_url
        return response

    def delete_responses_except(self, db: Session, application_id: UUID, keep_ids: List[UUID]) -> int:
        """Drop an application's responses to questions outside ``keep_ids``.

        Returns:
            Number of responses deleted
        """
        query = db.query(ApplicationResponse).filter(ApplicationResponse.application_id == application_id)
        if keep_ids:
            query = query.filter(ApplicationResponse.question_id.notin_(keep_ids))
        deleted = query.delete(synchronize_session="fetch")
        db.flush()
        return deleted

    def list_for_cycle(
        self,
        db: Session,
        cycle_id: UUID,
        status: Optional[str] = None,
        include_drafts: bool = False,
        skip: int = 0,
        limit: int = 100
    ) -> List[Application]:
        """Applications of a cycle, newest first; drafts are hidden from reviewers."""
        query = db.query(Application).filter(Application.cycle_id == cycle_id)
        if status is not None:
            query = query.filter(Application.status == status)
        elif not include_drafts:
            query = query.filter(Application.status != ApplicationStatus.DRAFT.value)
        return query.order_by(Application.created_at.desc()).offset(skip).limit(limit).all()

    def list_for_candidate(self, db: Session, candidate_id: UUID) -> List[Application]:
        return (
            db.query(Application)
            .filter(Application.candidate_id == candidate_id)
            .order_by(Application.updated_at.desc())
            .all()
        )

    def count_by_status(self, db: Session, cycle_id: UUID) -> Dict[str, int]:
        """Live count of a cycle's non-draft applications per status."""
        rows = (
            db.query(Application.status, func.count(Application.id))
            .filter(
                Application.cycle_id == cycle_id,
                Application.status != ApplicationStatus.DRAFT.value
            )
            .group_by(Application.status)
            .all()
        )
        return {status: count for status, count in rows}

    def count_for_candidate_by_status(self, db: Session, candidate_id: UUID) -> Dict[str, int]:
        rows = (
            db.query(Application.status, func.count(Application.id))
            .filter(Application.candidate_id == candidate_id)
            .group_by(Application.status)
            .all()
        )
        return {status: count for status, count in rows}

    def record_status_change(
        self,
        db: Session,
        application: Application,
        from_status: str,
        to_status: str,
        actor_id: Optional[UUID],
        actor_type: ActorType,
        reason: Optional[str] = None
    ) -> StatusChange:
        """Append an audit row for a transition."""
        change = StatusChange(
            application_id=application.id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            actor_type=actor_type.value,
            reason=reason,
            created_at=datetime.utcnow(),
        )
        db.add(change)
        db.flush()
        return change

    def get_history(self, db: Session, application_id: UUID, limit: int = 100) -> List[StatusChange]:
        """Transition history of an application, newest first."""
        return (
            db.query(StatusChange)
            .filter(StatusChange.application_id == application_id)
            .order_by(StatusChange.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_cycle(self, db: Session, application: Application) -> RecruitingCycle:
        return db.query(RecruitingCycle).filter(RecruitingCycle.id == application.cycle_id).one()
