"""Tests for question catalog ordering."""

from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from portal_backend.core.error_handling import EmptyContentError, NotFoundError, OutOfRangeError
from portal_backend.models.question import Question, QuestionType
from portal_backend.schemas.question import QuestionCreate, QuestionUpdate
from portal_backend.services.ordering import is_contiguous, plan_move, plan_remove, repack
from portal_backend.services.question_catalog import QuestionCatalogService
from tests import factories


def orders_by_prompt(db, cycle, subteam=None):
    service = QuestionCatalogService()
    return {q.prompt: q.order for q in service.list_partition(db, cycle.id, subteam.id if subteam else None)}


class TestOrderingPlans:
    """Pure ordinal arithmetic."""

    def test_move_forward_shifts_range_down(self):
        orders = {"a": 0, "b": 1, "c": 2, "d": 3}
        assert plan_move(orders, "a", 2) == {"b": 0, "c": 1, "a": 2}

    def test_move_backward_shifts_range_up(self):
        orders = {"a": 0, "b": 1, "c": 2, "d": 3}
        assert plan_move(orders, "d", 1) == {"b": 2, "c": 3, "d": 1}

    def test_move_to_current_is_noop(self):
        assert plan_move({"a": 0, "b": 1}, "b", 1) == {}

    def test_remove_closes_gap(self):
        assert plan_remove({"a": 0, "b": 1, "c": 2}, "b") == {"c": 1}

    def test_remove_last_changes_nothing(self):
        assert plan_remove({"a": 0, "b": 1}, "b") == {}

    def test_repack_only_reports_changed(self):
        orders = {"a": 0, "b": 3, "c": 7}
        assert repack(["a", "b", "c"], orders) == {"b": 1, "c": 2}

    def test_is_contiguous(self):
        assert is_contiguous([])
        assert is_contiguous([2, 0, 1])
        assert not is_contiguous([0, 2])
        assert not is_contiguous([0, 1, 1])


class TestQuestionCatalogService:
    """Question catalog against a real database."""

    def test_insert_appends_in_sequence(self, db, cycle):
        for prompt in ("A", "B", "C"):
            factories.add_question(db, cycle, prompt)

        assert orders_by_prompt(db, cycle) == {"A": 0, "B": 1, "C": 2}

    def test_scopes_are_independent_partitions(self, db, organization, cycle):
        subteam = factories.create_subteam(db, organization)
        factories.add_question(db, cycle, "General 1")
        factories.add_question(db, cycle, "Team 1", subteam=subteam)
        factories.add_question(db, cycle, "General 2")

        assert orders_by_prompt(db, cycle) == {"General 1": 0, "General 2": 1}
        assert orders_by_prompt(db, cycle, subteam) == {"Team 1": 0}

    def test_move_to_front(self, db, cycle):
        """Insert A, B, C then move B to 0: B=0, A=1, C=2."""
        factories.add_question(db, cycle, "A")
        b = factories.add_question(db, cycle, "B")
        factories.add_question(db, cycle, "C")

        QuestionCatalogService().move_question(db, b.id, 0)

        assert orders_by_prompt(db, cycle) == {"B": 0, "A": 1, "C": 2}

    def test_move_forward(self, db, cycle):
        a = factories.add_question(db, cycle, "A")
        for prompt in ("B", "C", "D"):
            factories.add_question(db, cycle, prompt)

        QuestionCatalogService().move_question(db, a.id, 2)

        assert orders_by_prompt(db, cycle) == {"B": 0, "C": 1, "A": 2, "D": 3}

    def test_move_to_same_position_is_noop(self, db, cycle):
        factories.add_question(db, cycle, "A")
        b = factories.add_question(db, cycle, "B")

        QuestionCatalogService().move_question(db, b.id, 1)

        assert orders_by_prompt(db, cycle) == {"A": 0, "B": 1}

    @pytest.mark.parametrize("target", [-1, 3, 100])
    def test_move_out_of_range_is_rejected(self, db, cycle, target):
        questions = [factories.add_question(db, cycle, prompt) for prompt in ("A", "B", "C")]

        with pytest.raises(OutOfRangeError):
            QuestionCatalogService().move_question(db, questions[0].id, target)

        assert orders_by_prompt(db, cycle) == {"A": 0, "B": 1, "C": 2}

    def test_remove_middle_repacks(self, db, cycle):
        """Removing order 1 of orders 0, 1, 2 leaves orders 0, 1."""
        factories.add_question(db, cycle, "A")
        b = factories.add_question(db, cycle, "B")
        factories.add_question(db, cycle, "C")

        QuestionCatalogService().remove_question(db, b.id)

        assert orders_by_prompt(db, cycle) == {"A": 0, "C": 1}

    def test_insert_after_remove_never_reuses_gap(self, db, cycle):
        a = factories.add_question(db, cycle, "A")
        factories.add_question(db, cycle, "B")

        QuestionCatalogService().remove_question(db, a.id)
        factories.add_question(db, cycle, "C")

        assert orders_by_prompt(db, cycle) == {"B": 0, "C": 1}

    def test_unknown_question_is_not_found(self, db, cycle):
        service = QuestionCatalogService()

        with pytest.raises(NotFoundError):
            service.move_question(db, uuid4(), 0)
        with pytest.raises(NotFoundError):
            service.remove_question(db, uuid4())
        with pytest.raises(NotFoundError):
            service.update_question(db, uuid4(), QuestionUpdate(prompt="x"))

    def test_insert_into_unknown_cycle_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            QuestionCatalogService().insert_question(db, uuid4(), QuestionCreate(prompt="Why?"))

    def test_insert_with_foreign_subteam_is_not_found(self, db, cycle):
        other_org = factories.create_organization(db)
        foreign = factories.create_subteam(db, other_org)

        with pytest.raises(NotFoundError):
            factories.add_question(db, cycle, "Why?", subteam=foreign)

    def test_update_does_not_touch_order(self, db, cycle):
        factories.add_question(db, cycle, "A")
        b = factories.add_question(db, cycle, "B")

        updated = QuestionCatalogService().update_question(
            db, b.id, QuestionUpdate(prompt="  Why us?  ", is_required=True, description="Be brief")
        )

        assert updated.prompt == "Why us?"
        assert updated.is_required is True
        assert updated.order == 1

    def test_update_rejects_blank_prompt(self, db, cycle):
        question = factories.add_question(db, cycle, "A")

        with pytest.raises(EmptyContentError):
            QuestionCatalogService().update_question(db, question.id, QuestionUpdate(prompt="   "))

    def test_update_select_options(self, db, cycle):
        question = factories.add_question(
            db, cycle, "Year?", question_type=QuestionType.SELECT, options=["Freshman", "Senior"]
        )
        service = QuestionCatalogService()

        updated = service.update_question(db, question.id, QuestionUpdate(options=["Junior", " Junior ", "Senior"]))
        assert updated.options == ["Junior", "Senior"]

        with pytest.raises(EmptyContentError):
            service.update_question(db, question.id, QuestionUpdate(options=[]))

    def test_text_question_rejects_options(self, db, cycle):
        question = factories.add_question(db, cycle, "Why?")

        with pytest.raises(ValueError):
            QuestionCatalogService().update_question(db, question.id, QuestionUpdate(options=["a"]))

    def test_normalize_repairs_damaged_partition(self, db, cycle):
        questions = [factories.add_question(db, cycle, prompt) for prompt in ("A", "B", "C")]
        questions[0].order = 0
        questions[1].order = 4
        questions[2].order = 9
        db.commit()

        repaired = QuestionCatalogService().normalize_partition(db, cycle.id)

        assert repaired == 2
        assert orders_by_prompt(db, cycle) == {"A": 0, "B": 1, "C": 2}

    def test_list_visible_puts_general_first(self, db, organization, cycle):
        subteam = factories.create_subteam(db, organization)
        factories.add_question(db, cycle, "Team 1", subteam=subteam)
        factories.add_question(db, cycle, "General 1")
        factories.add_question(db, cycle, "General 2")

        service = QuestionCatalogService()
        visible = service.list_visible(db, cycle.id, subteam.id)
        general_only = service.list_visible(db, cycle.id)

        assert [q.prompt for q in visible] == ["General 1", "General 2", "Team 1"]
        assert [q.prompt for q in general_only] == ["General 1", "General 2"]

    def test_transient_failure_is_retried_from_fresh_state(self, db, cycle, monkeypatch):
        for prompt in ("A", "B", "C"):
            factories.add_question(db, cycle, prompt)
        c = db.query(Question).filter(Question.prompt == "C").one()

        service = QuestionCatalogService(retry_manager=factories.fast_retry_manager())
        original_apply = service._apply
        calls = {"count": 0}

        def flaky_apply(session, partition, changes):
            calls["count"] += 1
            original_apply(session, partition, changes)
            if calls["count"] == 1:
                raise OperationalError("UPDATE application_questions", {}, Exception("database is locked"))

        monkeypatch.setattr(service, "_apply", flaky_apply)
        service.move_question(db, c.id, 0)

        assert calls["count"] == 2
        assert orders_by_prompt(db, cycle) == {"C": 0, "A": 1, "B": 2}

    def test_retries_give_up_after_max_attempts(self, db, cycle, monkeypatch):
        a = factories.add_question(db, cycle, "A")
        factories.add_question(db, cycle, "B")

        service = QuestionCatalogService(retry_manager=factories.fast_retry_manager(max_attempts=2))

        def always_locked(session, partition, changes):
            raise OperationalError("UPDATE application_questions", {}, Exception("database is locked"))

        monkeypatch.setattr(service, "_apply", always_locked)

        with pytest.raises(OperationalError):
            service.move_question(db, a.id, 1)

        assert orders_by_prompt(db, cycle) == {"A": 0, "B": 1}


class TestQuestionSchemas:

    def test_select_requires_options(self):
        with pytest.raises(ValidationError):
            QuestionCreate(prompt="Pick one", question_type=QuestionType.SELECT)

    def test_text_rejects_options(self):
        with pytest.raises(ValidationError):
            QuestionCreate(prompt="Why?", options=["a"])

    def test_blank_prompt_rejected(self):
        with pytest.raises(ValidationError):
            QuestionCreate(prompt="   ")
