"""Tests for lifecycle notification events."""

from datetime import datetime
from uuid import uuid4

from portal_backend.core.event_publisher import EventPublisher, NotificationKind
from tests import factories


def test_publish_reaches_every_sink():
    publisher, first = factories.recording_publisher()
    second = factories.RecordingSink()
    publisher.register(second)

    delivered = publisher.publish_application_submitted(uuid4(), uuid4(), uuid4(), datetime.utcnow())

    assert delivered == 2
    assert first.kinds() == second.kinds() == ["application_submitted"]


def test_failing_sink_is_skipped():
    def broken(event):
        raise ConnectionError("smtp unreachable")

    sink = factories.RecordingSink()
    publisher = EventPublisher(sinks=[broken, sink], enabled=True)

    delivered = publisher.publish_status_changed(uuid4(), uuid4(), "SUBMITTED", "INTERVIEW")

    assert delivered == 1
    assert sink.events[0].kind is NotificationKind.STATUS_CHANGED
    assert sink.events[0].data["new_status"] == "INTERVIEW"


def test_disabled_publisher_delivers_nothing():
    sink = factories.RecordingSink()
    publisher = EventPublisher(sinks=[sink], enabled=False)

    assert publisher.publish_new_application_received(uuid4(), uuid4(), uuid4()) == 0
    assert sink.events == []


def test_unregister():
    publisher, sink = factories.recording_publisher()
    publisher.unregister(sink)

    publisher.publish_status_changed(uuid4(), uuid4(), "SUBMITTED", "OFFER")

    assert sink.events == []


def test_optional_fields_are_omitted():
    publisher, sink = factories.recording_publisher()
    subteam_id = uuid4()

    publisher.publish_new_application_received(uuid4(), uuid4(), uuid4())
    publisher.publish_new_application_received(uuid4(), uuid4(), uuid4(), subteam_id=subteam_id)
    publisher.publish_interview_scheduled(uuid4(), uuid4(), datetime(2026, 10, 1, 15, 0))

    assert "subteam_id" not in sink.events[0].data
    assert sink.events[1].data["subteam_id"] == subteam_id
    assert sink.events[2].data["interview_start"] == "2026-10-01T15:00:00"
    assert "location" not in sink.events[2].data
