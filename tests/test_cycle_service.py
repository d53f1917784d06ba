"""Tests for organization and recruiting cycle administration."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from portal_backend.core.error_handling import NotFoundError
from portal_backend.models.cycle import RecruitingCycle
from portal_backend.schemas.cycle import CycleCreate, CycleTimelineUpdate, OrganizationCreate, SubteamCreate
from portal_backend.services.cycle_service import CycleService
from tests import factories


def cycle_data(name="Fall Recruiting", is_active=False, **overrides):
    now = datetime.utcnow()
    values = {
        "name": name,
        "semester": "2026-Fall",
        "application_open_date": now,
        "application_deadline": now + timedelta(days=21),
        "is_active": is_active,
    }
    values.update(overrides)
    return CycleCreate(**values)


@pytest.fixture
def service():
    return CycleService()


class TestOrganizations:

    def test_create_organization(self, db, service):
        organization = service.create_organization(
            db, OrganizationCreate(slug="robotics", name="Robotics Club")
        )
        assert organization.slug == "robotics"

    def test_duplicate_slug_is_rejected(self, db, service):
        service.create_organization(db, OrganizationCreate(slug="robotics", name="Robotics Club"))

        with pytest.raises(ValueError):
            service.create_organization(db, OrganizationCreate(slug="robotics", name="Other"))

    def test_invalid_slug(self):
        with pytest.raises(ValidationError):
            OrganizationCreate(slug="Robotics Club", name="Robotics Club")

    def test_add_subteam(self, db, service, organization):
        subteam = service.add_subteam(db, organization.id, SubteamCreate(name="Mechanical"))
        assert subteam.organization_id == organization.id

        with pytest.raises(NotFoundError):
            service.add_subteam(db, uuid4(), SubteamCreate(name="Mechanical"))


class TestCycles:

    def test_single_active_cycle(self, db, service, organization):
        first = service.create_cycle(db, organization.id, cycle_data("Fall", is_active=True))
        second = service.create_cycle(db, organization.id, cycle_data("Spring", is_active=True))

        db.refresh(first)
        assert first.is_active is False
        assert second.is_active is True
        assert service.get_active_cycle(db, organization.id).id == second.id

    def test_activate_switches_active_cycle(self, db, service, organization):
        first = service.create_cycle(db, organization.id, cycle_data("Fall", is_active=True))
        second = service.create_cycle(db, organization.id, cycle_data("Spring"))

        service.activate_cycle(db, second.id)

        active = db.query(RecruitingCycle).filter(RecruitingCycle.is_active.is_(True)).all()
        assert [cycle.id for cycle in active] == [second.id]
        db.refresh(first)
        assert first.is_active is False

    def test_deactivate_leaves_no_active_cycle(self, db, service, organization):
        cycle = service.create_cycle(db, organization.id, cycle_data(is_active=True))

        service.deactivate_cycle(db, cycle.id)

        assert service.get_active_cycle(db, organization.id) is None

    def test_create_cycle_for_unknown_organization(self, db, service):
        with pytest.raises(NotFoundError):
            service.create_cycle(db, uuid4(), cycle_data())

    def test_list_cycles(self, db, service, organization):
        service.create_cycle(db, organization.id, cycle_data("Fall"))
        service.create_cycle(db, organization.id, cycle_data("Spring"))

        assert {cycle.name for cycle in service.list_cycles(db, organization.id)} == {"Fall", "Spring"}


class TestTimeline:

    def test_schema_rejects_inverted_dates(self):
        now = datetime.utcnow()
        with pytest.raises(ValidationError):
            cycle_data(application_open_date=now, application_deadline=now - timedelta(days=1))
        with pytest.raises(ValidationError):
            cycle_data(review_deadline=now)

    def test_extend_deadline(self, db, service, organization):
        cycle = factories.create_cycle(db, organization)
        new_deadline = cycle.application_deadline + timedelta(days=7)

        updated = service.update_timeline(
            db, cycle.id, CycleTimelineUpdate(application_deadline=new_deadline, allow_late_submissions=True)
        )

        assert updated.application_deadline == new_deadline
        assert updated.allow_late_submissions is True

    def test_deadline_before_open_is_rejected(self, db, service, organization):
        cycle = factories.create_cycle(db, organization)
        original = cycle.application_deadline

        with pytest.raises(ValueError):
            service.update_timeline(
                db,
                cycle.id,
                CycleTimelineUpdate(application_deadline=cycle.application_open_date - timedelta(days=1)),
            )

        db.refresh(cycle)
        assert cycle.application_deadline == original

    def test_review_deadline_cannot_precede_deadline(self, db, service, organization):
        cycle = factories.create_cycle(db, organization)

        with pytest.raises(ValueError):
            service.update_timeline(
                db, cycle.id, CycleTimelineUpdate(review_deadline=cycle.application_deadline - timedelta(days=1))
            )

    def test_offset_timestamps_are_stored_as_utc(self):
        timeline = CycleTimelineUpdate(
            application_deadline="2026-11-01T12:00:00Z",
            review_deadline="2026-11-08T14:00:00+02:00",
        )

        assert timeline.application_deadline == datetime(2026, 11, 1, 12, 0)
        assert timeline.review_deadline == datetime(2026, 11, 8, 12, 0)
        assert timeline.application_deadline.tzinfo is None

    def test_aware_deadline_extends_stored_timeline(self, db, service, organization):
        cycle = factories.create_cycle(db, organization)
        db.expire_all()
        new_deadline = datetime.now(timezone.utc) + timedelta(days=40)

        updated = service.update_timeline(db, cycle.id, CycleTimelineUpdate(application_deadline=new_deadline))

        assert updated.application_deadline == new_deadline.replace(tzinfo=None)
        assert updated.is_open_for_submission(datetime.utcnow())

    def test_create_cycle_with_offset_dates(self, db, service, organization):
        cycle = service.create_cycle(
            db,
            organization.id,
            cycle_data(
                application_open_date="2026-09-01T00:00:00Z",
                application_deadline="2026-09-21T23:59:00-04:00",
            ),
        )

        assert cycle.application_deadline == datetime(2026, 9, 22, 3, 59)
