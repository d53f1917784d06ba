"""Fire-and-forget notification events for the application lifecycle."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID
import structlog

from .config import settings

logger = structlog.get_logger(__name__)


class NotificationKind(str, Enum):
    """The four triggers the core emits."""
    APPLICATION_SUBMITTED = "application_submitted"
    STATUS_CHANGED = "status_changed"
    NEW_APPLICATION_RECEIVED = "new_application_received"
    INTERVIEW_SCHEDULED = "interview_scheduled"


@dataclass(frozen=True)
class NotificationEvent:
    """A single notification trigger with the minimal data its kind implies."""
    kind: NotificationKind
    application_id: UUID
    data: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)


NotificationSink = Callable[[NotificationEvent], Any]


def logging_sink(event: NotificationEvent) -> None:
    """Default sink: record the event in the structured log."""
    logger.info(
        "Notification event",
        kind=event.kind.value,
        application_id=str(event.application_id),
        **{key: str(value) for key, value in event.data.items()}
    )


class EventPublisher:
    """Publishes lifecycle events to registered sinks.

    Publishing never raises: a failing sink is logged and skipped, so a
    delivery problem can never roll back the state change that triggered it.
    Services publish only after their transaction has committed.
    """

    def __init__(self, sinks: Optional[List[NotificationSink]] = None, enabled: Optional[bool] = None):
        self.sinks: List[NotificationSink] = list(sinks) if sinks is not None else [logging_sink]
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def register(self, sink: NotificationSink) -> None:
        self.sinks.append(sink)

    def unregister(self, sink: NotificationSink) -> None:
        if sink in self.sinks:
            self.sinks.remove(sink)

    def publish(self, event: NotificationEvent) -> int:
        """Deliver an event to every sink.

        Returns:
            Number of sinks that accepted the event
        """
        if not self.enabled:
            logger.debug("Notification skipped (notifications disabled)", kind=event.kind.value)
            return 0

        delivered = 0
        for sink in list(self.sinks):
            try:
                sink(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    "Failed to deliver notification event",
                    kind=event.kind.value,
                    application_id=str(event.application_id),
                    sink=getattr(sink, "__name__", repr(sink)),
                    error=str(e)
                )
        return delivered

    def publish_application_submitted(
        self,
        application_id: UUID,
        candidate_id: UUID,
        cycle_id: UUID,
        submitted_at: datetime
    ) -> int:
        """Confirmation to the candidate that their application was submitted."""
        return self.publish(NotificationEvent(
            kind=NotificationKind.APPLICATION_SUBMITTED,
            application_id=application_id,
            data={
                "candidate_id": candidate_id,
                "cycle_id": cycle_id,
                "submitted_at": submitted_at.isoformat(),
            },
        ))

    def publish_new_application_received(
        self,
        application_id: UUID,
        organization_id: UUID,
        candidate_id: UUID,
        subteam_id: Optional[UUID] = None
    ) -> int:
        """Alert to the organization's reviewers that a new application arrived."""
        data = {"organization_id": organization_id, "candidate_id": candidate_id}
        if subteam_id:
            data["subteam_id"] = subteam_id
        return self.publish(NotificationEvent(
            kind=NotificationKind.NEW_APPLICATION_RECEIVED,
            application_id=application_id,
            data=data,
        ))

    def publish_status_changed(
        self,
        application_id: UUID,
        candidate_id: UUID,
        old_status: str,
        new_status: str,
        changed_by: Optional[UUID] = None
    ) -> int:
        """Status update to the candidate."""
        data = {
            "candidate_id": candidate_id,
            "old_status": old_status,
            "new_status": new_status,
        }
        if changed_by:
            data["changed_by"] = changed_by
        return self.publish(NotificationEvent(
            kind=NotificationKind.STATUS_CHANGED,
            application_id=application_id,
            data=data,
        ))

    def publish_interview_scheduled(
        self,
        application_id: UUID,
        candidate_id: UUID,
        interview_start: datetime,
        location: Optional[str] = None
    ) -> int:
        """Interview invitation to the candidate."""
        data = {
            "candidate_id": candidate_id,
            "interview_start": interview_start.isoformat(),
        }
        if location:
            data["location"] = location
        return self.publish(NotificationEvent(
            kind=NotificationKind.INTERVIEW_SCHEDULED,
            application_id=application_id,
            data=data,
        ))


# Global event publisher instance
event_publisher = EventPublisher()
