"""Interview slot model."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID, JSONList


class InterviewSlot(Base):
    """A scheduled interview for an application within a cycle."""

    __tablename__ = "interview_slots"

    id = Column(GUID(), primary_key=True, default=uuid4)
    cycle_id = Column(GUID(), ForeignKey("recruiting_cycles.id"), nullable=False, index=True)
    application_id = Column(
        GUID(), ForeignKey("applications.id", ondelete="CASCADE"), nullable=True, index=True
    )
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=True)
    virtual_link = Column(String(1024), nullable=True)
    notes = Column(Text, nullable=True)
    interviewer_ids = Column(JSONList(), default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    application = relationship("Application")

    def __repr__(self) -> str:
        return f"<InterviewSlot(id={self.id}, application_id={self.application_id}, start={self.start_time})>"
