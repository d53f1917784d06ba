"""Organization and recruiting cycle administration."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.core.database import transaction
from portal_backend.models.cycle import RecruitingCycle
from portal_backend.models.organization import Organization, Subteam
from portal_backend.repositories.cycle import CycleRepository, OrganizationRepository
from portal_backend.schemas.cycle import (
    CycleCreate,
    CycleTimelineUpdate,
    OrganizationCreate,
    SubteamCreate,
)

logger = structlog.get_logger(__name__)


class CycleService:
    """Service for organizations, sub-groups and their recruiting cycles.

    At most one cycle per organization is active. Activating a cycle clears
    the flag on the others in the same transaction, and a partial unique
    index rejects any write that would leave two active.
    """

    def __init__(self):
        self.organizations = OrganizationRepository()
        self.cycles = CycleRepository()

    def create_organization(self, db: Session, organization_data: OrganizationCreate) -> Organization:
        """Create an organization.

        Raises:
            ValueError: If the slug is already taken
        """
        with transaction(db):
            if self.organizations.get_by_slug(db, organization_data.slug) is not None:
                raise ValueError(f"Organization slug already in use: {organization_data.slug}")
            organization = self.organizations.create(db, **organization_data.model_dump())

        logger.info("Organization created", organization_id=str(organization.id), slug=organization.slug)
        return organization

    def add_subteam(self, db: Session, organization_id: UUID, subteam_data: SubteamCreate) -> Subteam:
        with transaction(db):
            self.organizations.get_or_raise(db, organization_id)
            subteam = Subteam(organization_id=organization_id, **subteam_data.model_dump())
            db.add(subteam)
            db.flush()

        logger.info("Subteam created", organization_id=str(organization_id), subteam_id=str(subteam.id))
        return subteam

    def create_cycle(
        self,
        db: Session,
        organization_id: UUID,
        cycle_data: CycleCreate,
        actor_id: Optional[UUID] = None
    ) -> RecruitingCycle:
        """Create a cycle; an active one replaces the organization's current active cycle."""
        with transaction(db):
            self.organizations.get_or_raise(db, organization_id, for_update=True)
            values = cycle_data.model_dump()
            if values["is_active"]:
                self.cycles.deactivate_all(db, organization_id)
            cycle = self.cycles.create(
                db,
                organization_id=organization_id,
                created_by_id=actor_id,
                updated_by_id=actor_id,
                **values
            )

        logger.info(
            "Recruiting cycle created",
            cycle_id=str(cycle.id),
            organization_id=str(organization_id),
            is_active=cycle.is_active
        )
        return cycle

    def activate_cycle(self, db: Session, cycle_id: UUID, actor_id: Optional[UUID] = None) -> RecruitingCycle:
        """Make a cycle the organization's only active one."""
        with transaction(db):
            cycle = self.cycles.get_or_raise(db, cycle_id)
            self.organizations.get_or_raise(db, cycle.organization_id, for_update=True)
            if not cycle.is_active:
                deactivated = self.cycles.deactivate_all(db, cycle.organization_id)
                self.cycles.update(db, cycle, is_active=True, updated_by_id=actor_id)
                logger.info(
                    "Recruiting cycle activated",
                    cycle_id=str(cycle_id),
                    organization_id=str(cycle.organization_id),
                    deactivated=deactivated
                )
        return cycle

    def deactivate_cycle(self, db: Session, cycle_id: UUID, actor_id: Optional[UUID] = None) -> RecruitingCycle:
        with transaction(db):
            cycle = self.cycles.get_or_raise(db, cycle_id)
            self.cycles.update(db, cycle, is_active=False, updated_by_id=actor_id)
        logger.info("Recruiting cycle deactivated", cycle_id=str(cycle_id))
        return cycle

    def update_timeline(
        self,
        db: Session,
        cycle_id: UUID,
        timeline: CycleTimelineUpdate,
        actor_id: Optional[UUID] = None
    ) -> RecruitingCycle:
        """Edit a cycle's dates and late-submission policy.

        Raises:
            NotFoundError: If the cycle does not exist
            ValueError: If the resulting timeline is out of order
        """
        changes = timeline.model_dump(exclude_unset=True, exclude_none=True)

        with transaction(db):
            cycle = self.cycles.get_or_raise(db, cycle_id)
            open_date = changes.get("application_open_date", cycle.application_open_date)
            deadline = changes.get("application_deadline", cycle.application_deadline)
            if deadline <= open_date:
                raise ValueError("application_deadline must be after application_open_date")
            for field in ("review_deadline", "decision_date"):
                value = changes.get(field, getattr(cycle, field))
                if value is not None and value < deadline:
                    raise ValueError(f"{field} cannot precede application_deadline")
            self.cycles.update(db, cycle, updated_by_id=actor_id, **changes)

        logger.info("Recruiting cycle timeline updated", cycle_id=str(cycle_id), fields=sorted(changes))
        return cycle

    def get_active_cycle(self, db: Session, organization_id: UUID) -> Optional[RecruitingCycle]:
        return self.cycles.get_active_for_organization(db, organization_id)

    def list_cycles(self, db: Session, organization_id: UUID) -> List[RecruitingCycle]:
        self.organizations.get_or_raise(db, organization_id)
        return self.cycles.list_for_organization(db, organization_id)
