"""Recruiting cycle model."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Index, text
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID


class RecruitingCycle(Base):
    """One recruiting period of an organization; owns its question catalog."""

    __tablename__ = "recruiting_cycles"
    __table_args__ = (
        # At most one active cycle per organization, enforced at write time.
        Index(
            "uq_recruiting_cycles_active_per_org",
            "organization_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = Column(GUID(), primary_key=True, default=uuid4)
    organization_id = Column(GUID(), ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    semester = Column(String(20), nullable=True)
    application_open_date = Column(DateTime, nullable=False)
    application_deadline = Column(DateTime, nullable=False)
    review_deadline = Column(DateTime, nullable=True)
    decision_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    allow_late_submissions = Column(Boolean, default=False, nullable=False)
    require_resume = Column(Boolean, default=False, nullable=False)
    created_by_id = Column(GUID(), nullable=True)
    updated_by_id = Column(GUID(), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="cycles")
    questions = relationship(
        "Question",
        back_populates="cycle",
        cascade="all, delete-orphan",
        order_by="Question.order",
    )
    applications = relationship("Application", back_populates="cycle")

    def __repr__(self) -> str:
        return f"<RecruitingCycle(id={self.id}, name='{self.name}', active={self.is_active})>"

    def is_open_for_submission(self, at: datetime) -> bool:
        """Whether a submission at ``at`` is accepted by this cycle's timeline."""
        return self.allow_late_submissions or at <= self.application_deadline
