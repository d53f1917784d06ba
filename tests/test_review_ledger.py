"""Tests for reviewer scores and notes."""

from uuid import uuid4

import pytest

from portal_backend.core.config import settings
from portal_backend.core.error_handling import (
    EmptyContentError,
    ForbiddenError,
    NotFoundError,
    OutOfRangeError,
)
from portal_backend.models.application import ApplicationStatus
from portal_backend.models.review import ApplicationScore, ReviewNote
from portal_backend.services.review_service import ReviewLedgerService
from tests import factories


@pytest.fixture
def ledger(retry_manager):
    return ReviewLedgerService(retry_manager=retry_manager)


@pytest.fixture
def application(db, cycle):
    return factories.create_application(db, cycle, status=ApplicationStatus.SUBMITTED)


class TestScores:

    def test_score_upsert_keeps_latest(self, db, application, ledger):
        reviewer = factories.reviewer()

        ledger.set_score(db, application.id, reviewer, 2)
        ledger.set_score(db, application.id, reviewer, 4)

        scores = db.query(ApplicationScore).filter_by(application_id=application.id).all()
        assert len(scores) == 1
        assert scores[0].overall_score == 4

    @pytest.mark.parametrize("value", [0, 6, -1, 100])
    def test_out_of_range_creates_no_row(self, db, application, ledger, value):
        with pytest.raises(OutOfRangeError):
            ledger.set_score(db, application.id, factories.reviewer(), value)

        assert db.query(ApplicationScore).count() == 0

    @pytest.mark.parametrize("value", [True, 4.5, "5", None])
    def test_non_integer_scores_are_rejected(self, db, application, ledger, value):
        with pytest.raises(OutOfRangeError):
            ledger.set_score(db, application.id, factories.reviewer(), value)

    def test_criteria_scores_share_the_scale(self, db, application, ledger):
        reviewer = factories.reviewer()

        score = ledger.set_score(db, application.id, reviewer, 4, {"technical": 5, "communication": 3})
        assert score.criteria == {"technical": 5, "communication": 3}

        with pytest.raises(OutOfRangeError):
            ledger.set_score(db, application.id, reviewer, 4, {"technical": 7})

    def test_candidate_cannot_score(self, db, application, ledger):
        with pytest.raises(ForbiddenError):
            ledger.set_score(db, application.id, factories.candidate(), 3)

    def test_draft_cannot_be_scored(self, db, cycle, ledger):
        draft = factories.create_application(db, cycle)

        with pytest.raises(ForbiddenError):
            ledger.set_score(db, draft.id, factories.reviewer(), 3)

    def test_unknown_application(self, db, ledger):
        with pytest.raises(NotFoundError):
            ledger.set_score(db, uuid4(), factories.reviewer(), 3)

    def test_list_scores(self, db, application, ledger):
        first, second = factories.reviewer(), factories.reviewer()
        ledger.set_score(db, application.id, first, 4)
        ledger.set_score(db, application.id, second, 5)

        scores = ledger.list_scores(db, application.id, first)

        assert sorted(score.overall_score for score in scores) == [4, 5]


class TestNotes:

    def test_add_note_trims_content(self, db, application, ledger):
        reviewer = factories.reviewer()

        note = ledger.add_note(db, application.id, reviewer, "  Strong CAD portfolio  ")

        assert note.content == "Strong CAD portfolio"
        assert note.author_id == reviewer.user_id
        assert note.created_at is not None

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_note_is_rejected(self, db, application, ledger, content):
        with pytest.raises(EmptyContentError):
            ledger.add_note(db, application.id, factories.reviewer(), content)
        assert db.query(ReviewNote).count() == 0

    def test_overlong_note_is_rejected(self, db, application, ledger):
        with pytest.raises(OutOfRangeError):
            ledger.add_note(db, application.id, factories.reviewer(), "x" * (settings.note_max_length + 1))

    def test_only_author_deletes(self, db, application, ledger):
        author, other = factories.reviewer(), factories.reviewer()
        note = ledger.add_note(db, application.id, author, "Follow up on robotics experience")

        with pytest.raises(ForbiddenError):
            ledger.delete_note(db, note.id, other)
        assert db.query(ReviewNote).count() == 1

        ledger.delete_note(db, note.id, author)
        assert db.query(ReviewNote).count() == 0

    def test_delete_unknown_note(self, db, ledger):
        with pytest.raises(NotFoundError):
            ledger.delete_note(db, uuid4(), factories.reviewer())

    def test_private_notes_visible_to_author_only(self, db, application, ledger):
        author, other = factories.reviewer(), factories.reviewer()
        ledger.add_note(db, application.id, author, "Shared note")
        ledger.add_note(db, application.id, author, "Private note", is_private=True)

        assert len(ledger.list_notes(db, application.id, author)) == 2
        assert [note.content for note in ledger.list_notes(db, application.id, other)] == ["Shared note"]
