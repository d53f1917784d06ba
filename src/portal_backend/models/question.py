"""Application question model."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Integer, Text, Index
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID, JSONList


class QuestionType(str, Enum):
    """Closed set of answer kinds a question can take."""
    SHORT_TEXT = "SHORT_TEXT"
    LONG_TEXT = "LONG_TEXT"
    SELECT = "SELECT"
    MULTI_SELECT = "MULTI_SELECT"
    FILE_UPLOAD = "FILE_UPLOAD"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SELECT, QuestionType.MULTI_SELECT)


class Question(Base):
    """A question in a cycle's catalog.

    ``order`` is contiguous from 0 within the (cycle, scope) partition, where
    the scope is ``subteam_id`` (``None`` meaning general).
    """

    __tablename__ = "application_questions"
    __table_args__ = (
        Index("ix_application_questions_partition", "cycle_id", "subteam_id", "order"),
    )

    id = Column(GUID(), primary_key=True, default=uuid4)
    cycle_id = Column(GUID(), ForeignKey("recruiting_cycles.id", ondelete="CASCADE"), nullable=False)
    subteam_id = Column(GUID(), ForeignKey("subteams.id"), nullable=True)
    prompt = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    question_type = Column(String(20), default=QuestionType.LONG_TEXT.value, nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    char_limit = Column(Integer, nullable=True)
    word_limit = Column(Integer, nullable=True)
    options = Column(JSONList(), default=list, nullable=False)
    order = Column(Integer, nullable=False)
    created_by_id = Column(GUID(), nullable=True)
    updated_by_id = Column(GUID(), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    cycle = relationship("RecruitingCycle", back_populates="questions")

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, order={self.order}, scope={self.subteam_id})>"

    @property
    def kind(self) -> QuestionType:
        return QuestionType(self.question_type)
