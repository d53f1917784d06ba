"""Reviewer scores and notes."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Boolean, Integer, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID, JSONDict

# Reviewer scores live on a fixed 1-5 scale.
SCORE_MIN = 1
SCORE_MAX = 5


class ApplicationScore(Base):
    """A reviewer's current score for an application; one per (application, reviewer)."""

    __tablename__ = "application_scores"
    __table_args__ = (
        UniqueConstraint("application_id", "reviewer_id", name="uq_application_scores_reviewer"),
        CheckConstraint(f"overall_score BETWEEN {SCORE_MIN} AND {SCORE_MAX}", name="ck_application_scores_range"),
    )

    id = Column(GUID(), primary_key=True, default=uuid4)
    application_id = Column(
        GUID(), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reviewer_id = Column(GUID(), nullable=False)
    overall_score = Column(Integer, nullable=False)
    criteria = Column(JSONDict(), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    application = relationship("Application", back_populates="scores")

    def __repr__(self) -> str:
        return (
            f"<ApplicationScore(application_id={self.application_id}, "
            f"reviewer_id={self.reviewer_id}, score={self.overall_score})>"
        )


class ReviewNote(Base):
    """Append-only reviewer note; only its author may delete it."""

    __tablename__ = "review_notes"

    id = Column(GUID(), primary_key=True, default=uuid4)
    application_id = Column(
        GUID(), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id = Column(GUID(), nullable=False)
    content = Column(Text, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    application = relationship("Application", back_populates="notes")

    def __repr__(self) -> str:
        return f"<ReviewNote(id={self.id}, author_id={self.author_id})>"
