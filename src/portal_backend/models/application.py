"""Application and response models."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID, JSONList


class ApplicationStatus(str, Enum):
    """Application lifecycle statuses, in pipeline order."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    INTERVIEW = "INTERVIEW"
    OFFER = "OFFER"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    ApplicationStatus.ACCEPTED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})

# Every status a reviewer can see or set.
PIPELINE_STATUSES = tuple(s for s in ApplicationStatus if s is not ApplicationStatus.DRAFT)


class Application(Base):
    """A candidate's application to one recruiting cycle."""

    __tablename__ = "applications"
    __table_args__ = (
        # At most one application per (candidate, cycle); concurrent first
        # saves rely on this to collapse into a single row.
        UniqueConstraint("candidate_id", "cycle_id", name="uq_applications_candidate_cycle"),
    )

    id = Column(GUID(), primary_key=True, default=uuid4)
    candidate_id = Column(GUID(), nullable=False, index=True)
    cycle_id = Column(GUID(), ForeignKey("recruiting_cycles.id"), nullable=False, index=True)
    subteam_id = Column(GUID(), ForeignKey("subteams.id"), nullable=True)
    status = Column(String(20), default=ApplicationStatus.DRAFT.value, nullable=False, index=True)
    completion_percent = Column(Integer, default=0, nullable=False)
    last_saved_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    cycle = relationship("RecruitingCycle", back_populates="applications")
    responses = relationship(
        "ApplicationResponse",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    scores = relationship(
        "ApplicationScore",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    notes = relationship(
        "ReviewNote",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReviewNote.created_at.desc()",
    )
    status_changes = relationship(
        "StatusChange",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, candidate_id={self.candidate_id}, status={self.status})>"

    @property
    def is_draft(self) -> bool:
        return self.status == ApplicationStatus.DRAFT.value


class ApplicationResponse(Base):
    """Answer to one question; exactly one per (application, question)."""

    __tablename__ = "application_responses"
    __table_args__ = (
        UniqueConstraint("application_id", "question_id", name="uq_application_responses_question"),
    )

    id = Column(GUID(), primary_key=True, default=uuid4)
    application_id = Column(
        GUID(), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id = Column(
        GUID(), ForeignKey("application_questions.id", ondelete="CASCADE"), nullable=False
    )
    text_response = Column(Text, nullable=True)
    selected_options = Column(JSONList(), default=list, nullable=False)
    file_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    application = relationship("Application", back_populates="responses")
    question = relationship("Question")

    def __repr__(self) -> str:
        return f"<ApplicationResponse(application_id={self.application_id}, question_id={self.question_id})>"

    @property
    def is_blank(self) -> bool:
        """Whether this response carries no answer at all."""
        has_text = bool(self.text_response and self.text_response.strip())
        has_options = any(option.strip() for option in (self.selected_options or []))
        has_file = bool(self.file_url and self.file_url.strip())
        return not (has_text or has_options or has_file)
