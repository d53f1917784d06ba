"""Recruiting cycle repository for database operations."""

from typing import Optional, List
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.models.cycle import RecruitingCycle
from portal_backend.models.organization import Organization, Subteam
from .base import BaseRepository

logger = structlog.get_logger(__name__)


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for organizations and their sub-groups."""

    def __init__(self):
        super().__init__(Organization)

    def get_by_slug(self, db: Session, slug: str) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.slug == slug).first()

    def get_subteam(self, db: Session, subteam_id: UUID) -> Optional[Subteam]:
        return db.query(Subteam).filter(Subteam.id == subteam_id).first()


class CycleRepository(BaseRepository[RecruitingCycle]):
    """Repository for RecruitingCycle operations."""

    def __init__(self):
        super().__init__(RecruitingCycle)

    def get_active_for_organization(
        self,
        db: Session,
        organization_id: UUID
    ) -> Optional[RecruitingCycle]:
        """Get the active cycle of an organization, if any."""
        return (
            db.query(RecruitingCycle)
            .filter(
                RecruitingCycle.organization_id == organization_id,
                RecruitingCycle.is_active.is_(True)
            )
            .first()
        )

    def list_for_organization(self, db: Session, organization_id: UUID) -> List[RecruitingCycle]:
        return (
            db.query(RecruitingCycle)
            .filter(RecruitingCycle.organization_id == organization_id)
            .order_by(RecruitingCycle.application_open_date.desc())
            .all()
        )

    def deactivate_all(self, db: Session, organization_id: UUID) -> int:
        """Clear the active flag on every cycle of an organization."""
        updated = (
            db.query(RecruitingCycle)
            .filter(
                RecruitingCycle.organization_id == organization_id,
                RecruitingCycle.is_active.is_(True)
            )
            .update({RecruitingCycle.is_active: False}, synchronize_session="fetch")
        )
        db.flush()
        return updated
