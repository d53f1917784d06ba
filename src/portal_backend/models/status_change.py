"""Audit log of application pipeline transitions."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID


class ActorType(str, Enum):
    """Who drove a transition."""
    CANDIDATE = "CANDIDATE"
    REVIEWER = "REVIEWER"
    SYSTEM = "SYSTEM"


class StatusChange(Base):
    """One application status transition."""

    __tablename__ = "status_changes"

    id = Column(GUID(), primary_key=True, default=uuid4)
    application_id = Column(
        GUID(), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    actor_id = Column(GUID(), nullable=True)  # Null for system actions
    actor_type = Column(String(20), default=ActorType.SYSTEM.value, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    application = relationship("Application", back_populates="status_changes")

    def __repr__(self) -> str:
        return f"<StatusChange(application_id={self.application_id}, {self.from_status}->{self.to_status})>"

    @property
    def transition_description(self) -> str:
        """Get a human-readable description of the transition."""
        return f"{self.from_status} -> {self.to_status}"
