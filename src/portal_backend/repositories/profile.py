"""Candidate profile repository."""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from portal_backend.models.profile import CandidateProfile
from .base import BaseRepository


class ProfileRepository(BaseRepository[CandidateProfile]):
    """Repository for CandidateProfile operations."""

    def __init__(self):
        super().__init__(CandidateProfile)

    def get_by_user(self, db: Session, user_id: UUID) -> Optional[CandidateProfile]:
        return db.query(CandidateProfile).filter(CandidateProfile.user_id == user_id).first()
