"""Submission gate and review pipeline state machine."""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.models import Caller
from portal_backend.core.database import transaction
from portal_backend.core.error_handling import (
    AlreadySubmittedError,
    ForbiddenError,
    InvalidTransitionError,
    SubmissionClosedError,
)
from portal_backend.core.event_publisher import EventPublisher, event_publisher
from portal_backend.models.application import Application, ApplicationStatus
from portal_backend.models.interview import InterviewSlot
from portal_backend.models.status_change import ActorType, StatusChange
from portal_backend.repositories.application import ApplicationRepository
from portal_backend.schemas.application import InterviewSchedule

logger = structlog.get_logger(__name__)


class ReviewPipelineService:
    """Service for submitting applications and moving them through review.

    Once an application leaves DRAFT it never returns. Reviewers may set any
    other status from any non-draft status, including moving an application
    back a stage; concurrent reviewers resolve by last write wins.
    """

    def __init__(self, publisher: Optional[EventPublisher] = None):
        self.repository = ApplicationRepository()
        self.publisher = publisher or event_publisher

    def submit_application(
        self,
        db: Session,
        application_id: UUID,
        candidate_id: UUID,
        now: Optional[datetime] = None
    ) -> Application:
        """Freeze a draft and hand it to review.

        Raises:
            NotFoundError: If the application does not exist
            ForbiddenError: If the caller does not own the application
            AlreadySubmittedError: If the application has already left DRAFT
            SubmissionClosedError: If the cycle deadline passed and late submissions are off
        """
        now = now or datetime.utcnow()

        with transaction(db):
            application = self.repository.get_or_raise(db, application_id, for_update=True)
            if application.candidate_id != candidate_id:
                raise ForbiddenError("Only the applicant can submit this application")
            if not application.is_draft:
                raise AlreadySubmittedError(application.id, application.status)

            cycle = self.repository.get_cycle(db, application)
            if not cycle.is_open_for_submission(now):
                raise SubmissionClosedError(cycle.id, cycle.application_deadline)

            application.status = ApplicationStatus.SUBMITTED.value
            application.submitted_at = now
            application.completion_percent = 100
            self.repository.record_status_change(
                db,
                application,
                from_status=ApplicationStatus.DRAFT.value,
                to_status=ApplicationStatus.SUBMITTED.value,
                actor_id=candidate_id,
                actor_type=ActorType.CANDIDATE,
                reason="Submitted by candidate",
            )

        logger.info(
            "Application submitted",
            application_id=str(application.id),
            candidate_id=str(candidate_id),
            cycle_id=str(cycle.id)
        )

        self.publisher.publish_application_submitted(
            application.id, candidate_id, cycle.id, now
        )
        self.publisher.publish_new_application_received(
            application.id, cycle.organization_id, candidate_id, application.subteam_id
        )
        return application

    def can_transition_to(
        self,
        db: Session,
        application_id: UUID,
        target_status: ApplicationStatus
    ) -> Tuple[bool, str]:
        """Check whether a reviewer may move an application to ``target_status``.

        Returns:
            Tuple of (can_transition, reason)
        """
        application = self.repository.get_or_raise(db, application_id)
        if target_status is ApplicationStatus.DRAFT:
            return False, "Applications cannot return to DRAFT"
        if application.is_draft:
            return False, "Draft applications can only be submitted by the candidate"
        if application.status == target_status.value:
            return False, f"Application is already in {target_status.value} status"
        return True, "Transition is allowed"

    def _transition(
        self,
        db: Session,
        application: Application,
        new_status: ApplicationStatus,
        caller: Caller,
        reason: Optional[str]
    ) -> Optional[StatusChange]:
        """Apply a reviewer transition inside the caller's transaction."""
        if new_status is ApplicationStatus.DRAFT or application.is_draft:
            raise InvalidTransitionError(application.status, new_status.value)

        old_status = application.status
        if old_status == new_status.value:
            return None

        application.status = new_status.value
        return self.repository.record_status_change(
            db,
            application,
            from_status=old_status,
            to_status=new_status.value,
            actor_id=caller.user_id,
            actor_type=ActorType.REVIEWER,
            reason=reason,
        )

    def transition_status(
        self,
        db: Session,
        application_id: UUID,
        new_status: ApplicationStatus,
        caller: Caller,
        reason: Optional[str] = None
    ) -> Application:
        """Move an application to another pipeline stage.

        Setting the current status again is a no-op and emits nothing.

        Raises:
            ForbiddenError: If the caller is not a reviewer or admin
            NotFoundError: If the application does not exist
            InvalidTransitionError: If either side of the transition is DRAFT
        """
        if not caller.is_reviewer:
            raise ForbiddenError("Only reviewers can change application status")

        with transaction(db):
            application = self.repository.get_or_raise(db, application_id, for_update=True)
            change = self._transition(db, application, new_status, caller, reason)

        if change is None:
            logger.info(
                "Application already in target status",
                application_id=str(application_id),
                status=new_status.value
            )
            return application

        logger.info(
            "Application status changed",
            application_id=str(application_id),
            old_status=change.from_status,
            new_status=change.to_status,
            changed_by=str(caller.user_id)
        )
        self.publisher.publish_status_changed(
            application.id,
            application.candidate_id,
            change.from_status,
            change.to_status,
            caller.user_id,
        )
        return application

    def schedule_interview(
        self,
        db: Session,
        application_id: UUID,
        schedule: InterviewSchedule,
        caller: Caller
    ) -> InterviewSlot:
        """Book an interview and move the application to INTERVIEW.

        Raises:
            ForbiddenError: If the caller is not a reviewer or admin
            NotFoundError: If the application does not exist
            InvalidTransitionError: If the application is still a draft
        """
        if not caller.is_reviewer:
            raise ForbiddenError("Only reviewers can schedule interviews")

        with transaction(db):
            application = self.repository.get_or_raise(db, application_id, for_update=True)
            change = self._transition(
                db, application, ApplicationStatus.INTERVIEW, caller, "Interview scheduled"
            )
            slot = InterviewSlot(
                cycle_id=application.cycle_id,
                application_id=application.id,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
                location=schedule.location,
                virtual_link=schedule.virtual_link,
                notes=schedule.notes,
                interviewer_ids=[str(interviewer_id) for interviewer_id in schedule.interviewer_ids],
            )
            db.add(slot)
            db.flush()

        logger.info(
            "Interview scheduled",
            application_id=str(application_id),
            interview_id=str(slot.id),
            start_time=schedule.start_time.isoformat()
        )

        if change is not None:
            self.publisher.publish_status_changed(
                application.id,
                application.candidate_id,
                change.from_status,
                change.to_status,
                caller.user_id,
            )
        self.publisher.publish_interview_scheduled(
            application.id,
            application.candidate_id,
            schedule.start_time,
            schedule.location or schedule.virtual_link,
        )
        return slot

    def get_history(self, db: Session, application_id: UUID, limit: int = 100) -> List[StatusChange]:
        """Transitions of an application, newest first.

        Raises:
            NotFoundError: If the application does not exist
        """
        self.repository.get_or_raise(db, application_id)
        return self.repository.get_history(db, application_id, limit=limit)
