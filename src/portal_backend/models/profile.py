"""Candidate profile model."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import validates

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID


class CandidateProfile(Base):
    """Profile of a candidate; holds the reference to their stored resume."""

    __tablename__ = "candidate_profiles"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = Column(GUID(), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    resume_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<CandidateProfile(user_id={self.user_id}, name='{self.name}')>"

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value
