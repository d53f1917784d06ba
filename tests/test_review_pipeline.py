"""Tests for the submission gate and review pipeline."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from portal_backend.core.error_handling import (
    AlreadySubmittedError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    SubmissionClosedError,
)
from portal_backend.models.application import ApplicationStatus, PIPELINE_STATUSES
from portal_backend.models.interview import InterviewSlot
from portal_backend.models.status_change import ActorType, StatusChange
from portal_backend.schemas.application import InterviewSchedule
from portal_backend.services.pipeline_service import ReviewPipelineService
from tests import factories


@pytest.fixture
def pipeline(publisher):
    return ReviewPipelineService(publisher=publisher[0])


@pytest.fixture
def sink(publisher):
    return publisher[1]


@pytest.fixture
def submitted(db, cycle, pipeline):
    application = factories.create_application(db, cycle)
    return pipeline.submit_application(db, application.id, application.candidate_id)


class TestSubmitApplication:

    def test_submit_draft(self, db, cycle, pipeline, sink):
        application = factories.create_application(db, cycle)
        before = datetime.utcnow()

        result = pipeline.submit_application(db, application.id, application.candidate_id)

        assert result.status == ApplicationStatus.SUBMITTED.value
        assert result.submitted_at is not None and result.submitted_at >= before
        assert result.completion_percent == 100
        assert sink.kinds() == ["application_submitted", "new_application_received"]

    def test_second_submit_is_rejected(self, db, cycle, pipeline, sink):
        application = factories.create_application(db, cycle)
        first = pipeline.submit_application(db, application.id, application.candidate_id)
        submitted_at = first.submitted_at

        with pytest.raises(AlreadySubmittedError):
            pipeline.submit_application(db, application.id, application.candidate_id)

        db.refresh(first)
        assert first.submitted_at == submitted_at
        assert len(sink.events) == 2

    def test_only_owner_can_submit(self, db, cycle, pipeline):
        application = factories.create_application(db, cycle)

        with pytest.raises(ForbiddenError):
            pipeline.submit_application(db, application.id, uuid4())

    def test_unknown_application(self, db, pipeline):
        with pytest.raises(NotFoundError):
            pipeline.submit_application(db, uuid4(), uuid4())

    def test_deadline_closes_submission(self, db, organization, pipeline):
        cycle = factories.create_cycle(db, organization, deadline=datetime.utcnow() - timedelta(days=1))
        application = factories.create_application(db, cycle)

        with pytest.raises(SubmissionClosedError):
            pipeline.submit_application(db, application.id, application.candidate_id)

        db.refresh(application)
        assert application.status == ApplicationStatus.DRAFT.value

    def test_late_submission_when_allowed(self, db, organization, pipeline):
        cycle = factories.create_cycle(
            db, organization, deadline=datetime.utcnow() - timedelta(days=1), allow_late_submissions=True
        )
        application = factories.create_application(db, cycle)

        result = pipeline.submit_application(db, application.id, application.candidate_id)

        assert result.status == ApplicationStatus.SUBMITTED.value

    def test_submission_is_audited(self, db, submitted):
        change = db.query(StatusChange).filter_by(application_id=submitted.id).one()

        assert (change.from_status, change.to_status) == ("DRAFT", "SUBMITTED")
        assert change.actor_type == ActorType.CANDIDATE.value
        assert change.actor_id == submitted.candidate_id

    def test_failing_sink_does_not_roll_back(self, db, cycle):
        def broken_sink(event):
            raise RuntimeError("mail server down")

        publisher, sink = factories.recording_publisher()
        publisher.register(broken_sink)
        application = factories.create_application(db, cycle)

        result = ReviewPipelineService(publisher=publisher).submit_application(
            db, application.id, application.candidate_id
        )

        db.refresh(result)
        assert result.status == ApplicationStatus.SUBMITTED.value
        assert len(sink.events) == 2


class TestTransitionStatus:

    def test_reviewer_moves_forward_and_back(self, db, submitted, pipeline, sink):
        reviewer = factories.reviewer()

        pipeline.transition_status(db, submitted.id, ApplicationStatus.INTERVIEW, reviewer)
        result = pipeline.transition_status(db, submitted.id, ApplicationStatus.UNDER_REVIEW, reviewer)

        assert result.status == ApplicationStatus.UNDER_REVIEW.value
        assert sink.kinds()[-2:] == ["status_changed", "status_changed"]
        assert sink.events[-1].data["old_status"] == "INTERVIEW"
        assert sink.events[-1].data["new_status"] == "UNDER_REVIEW"

    def test_terminal_status_can_be_reopened(self, db, submitted, pipeline):
        reviewer = factories.reviewer()
        pipeline.transition_status(db, submitted.id, ApplicationStatus.REJECTED, reviewer)

        result = pipeline.transition_status(db, submitted.id, ApplicationStatus.UNDER_REVIEW, reviewer)

        assert result.status == ApplicationStatus.UNDER_REVIEW.value

    def test_admin_may_transition(self, db, submitted, pipeline):
        result = pipeline.transition_status(db, submitted.id, ApplicationStatus.OFFER, factories.admin())
        assert result.status == ApplicationStatus.OFFER.value

    def test_candidate_is_forbidden(self, db, submitted, pipeline):
        with pytest.raises(ForbiddenError):
            pipeline.transition_status(db, submitted.id, ApplicationStatus.ACCEPTED, factories.candidate())

    def test_draft_is_never_a_target(self, db, submitted, pipeline):
        with pytest.raises(InvalidTransitionError):
            pipeline.transition_status(db, submitted.id, ApplicationStatus.DRAFT, factories.reviewer())

    def test_draft_application_cannot_be_moved(self, db, cycle, pipeline):
        application = factories.create_application(db, cycle)

        with pytest.raises(InvalidTransitionError):
            pipeline.transition_status(db, application.id, ApplicationStatus.UNDER_REVIEW, factories.reviewer())

    def test_same_status_is_noop(self, db, submitted, pipeline, sink):
        events_before = len(sink.events)

        pipeline.transition_status(db, submitted.id, ApplicationStatus.SUBMITTED, factories.reviewer())

        assert len(sink.events) == events_before
        assert db.query(StatusChange).filter_by(application_id=submitted.id).count() == 1

    def test_history_newest_first(self, db, submitted, pipeline):
        reviewer = factories.reviewer()
        for status in (ApplicationStatus.UNDER_REVIEW, ApplicationStatus.INTERVIEW):
            pipeline.transition_status(db, submitted.id, status, reviewer, reason="progress")

        history = pipeline.get_history(db, submitted.id)

        assert [change.to_status for change in history] == ["INTERVIEW", "UNDER_REVIEW", "SUBMITTED"]
        assert history[0].actor_id == reviewer.user_id
        assert history[0].actor_type == ActorType.REVIEWER.value

    def test_can_transition_to(self, db, cycle, submitted, pipeline):
        draft = factories.create_application(db, cycle)

        assert pipeline.can_transition_to(db, submitted.id, ApplicationStatus.OFFER)[0]
        assert not pipeline.can_transition_to(db, submitted.id, ApplicationStatus.SUBMITTED)[0]
        assert not pipeline.can_transition_to(db, submitted.id, ApplicationStatus.DRAFT)[0]
        assert not pipeline.can_transition_to(db, draft.id, ApplicationStatus.OFFER)[0]

    def test_pipeline_statuses_exclude_draft(self):
        assert ApplicationStatus.DRAFT not in PIPELINE_STATUSES
        assert PIPELINE_STATUSES[0] is ApplicationStatus.SUBMITTED
        assert ApplicationStatus.WITHDRAWN.is_terminal
        assert not ApplicationStatus.OFFER.is_terminal


class TestScheduleInterview:

    def test_schedule_moves_to_interview(self, db, submitted, pipeline, sink):
        start = datetime.utcnow() + timedelta(days=2)
        schedule = InterviewSchedule(
            start_time=start,
            end_time=start + timedelta(minutes=30),
            location="Engineering Hall 201",
        )

        slot = pipeline.schedule_interview(db, submitted.id, schedule, factories.reviewer())

        db.refresh(submitted)
        assert submitted.status == ApplicationStatus.INTERVIEW.value
        assert db.query(InterviewSlot).one().id == slot.id
        assert sink.kinds()[-2:] == ["status_changed", "interview_scheduled"]
        assert sink.events[-1].data["location"] == "Engineering Hall 201"

    def test_schedule_for_draft_is_rejected(self, db, cycle, pipeline):
        application = factories.create_application(db, cycle)
        start = datetime.utcnow() + timedelta(days=1)
        schedule = InterviewSchedule(start_time=start, end_time=start + timedelta(hours=1))

        with pytest.raises(InvalidTransitionError):
            pipeline.schedule_interview(db, application.id, schedule, factories.reviewer())
        assert db.query(InterviewSlot).count() == 0

    def test_candidate_cannot_schedule(self, db, submitted, pipeline):
        start = datetime.utcnow() + timedelta(days=1)
        schedule = InterviewSchedule(start_time=start, end_time=start + timedelta(hours=1))

        with pytest.raises(ForbiddenError):
            pipeline.schedule_interview(db, submitted.id, schedule, factories.candidate())
