"""Candidate profiles and their resume attachments."""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.core.database import transaction
from portal_backend.core.error_handling import EmptyContentError, NotFoundError
from portal_backend.core.storage import FileStorage, LocalFileStorage
from portal_backend.models.profile import CandidateProfile
from portal_backend.repositories.profile import ProfileRepository

logger = structlog.get_logger(__name__)


class ProfileService:
    """Service for candidate profiles.

    Only the reference returned by the storage backend is kept on the
    profile. A replaced resume is removed from storage once the new
    reference is committed.
    """

    def __init__(self, storage: Optional[FileStorage] = None):
        self.repository = ProfileRepository()
        self._storage = storage

    @property
    def storage(self) -> FileStorage:
        if self._storage is None:
            self._storage = LocalFileStorage()
        return self._storage

    def get_profile(self, db: Session, user_id: UUID) -> Optional[CandidateProfile]:
        return self.repository.get_by_user(db, user_id)

    def upsert_profile(
        self,
        db: Session,
        user_id: UUID,
        name: str,
        email: Optional[str] = None
    ) -> CandidateProfile:
        """Create or update the caller's profile.

        Raises:
            EmptyContentError: If the name is blank
        """
        name = (name or "").strip()
        if not name:
            raise EmptyContentError("name")

        with transaction(db):
            profile = self.repository.get_by_user(db, user_id)
            if profile is None:
                profile = self.repository.create(db, user_id=user_id, name=name, email=email)
                created = True
            else:
                self.repository.update(db, profile, name=name, email=email)
                created = False

        logger.info("Candidate profile saved", user_id=str(user_id), created=created)
        return profile

    def attach_resume(
        self,
        db: Session,
        user_id: UUID,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None
    ) -> CandidateProfile:
        """Upload a resume and point the profile at it.

        Raises:
            NotFoundError: If the user has no profile
            ValueError: If the storage backend rejects the file
        """
        profile = self.repository.get_by_user(db, user_id)
        if profile is None:
            raise NotFoundError("CandidateProfile", user_id)

        previous = profile.resume_url
        reference = self.storage.upload(str(user_id), filename, content, content_type)
        try:
            with transaction(db):
                self.repository.update(db, profile, resume_url=reference)
        except Exception:
            self.storage.delete(reference)
            raise

        if previous and previous != reference:
            self.storage.delete(previous)

        logger.info("Resume attached", user_id=str(user_id), replaced=bool(previous))
        return profile

    def remove_resume(self, db: Session, user_id: UUID) -> CandidateProfile:
        """Detach the resume and delete it from storage.

        Raises:
            NotFoundError: If the user has no profile
        """
        with transaction(db):
            profile = self.repository.get_by_user(db, user_id)
            if profile is None:
                raise NotFoundError("CandidateProfile", user_id)
            previous = profile.resume_url
            self.repository.update(db, profile, resume_url=None)

        if previous:
            self.storage.delete(previous)
            logger.info("Resume removed", user_id=str(user_id))
        return profile
