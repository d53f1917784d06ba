"""
Property-based tests for draft saves and completion.
"""

import string
from uuid import uuid4

from hypothesis import given, note, strategies as st

from portal_backend.models.application import Application, ApplicationResponse
from portal_backend.services.draft_service import DraftService
from tests import factories
from .generators import form_shapes

answer_values = st.one_of(
    st.text(alphabet=string.ascii_letters + string.digits + " ", min_size=1, max_size=40),
    st.just(""),
    st.just("   "),
    st.none(),
)


def _expected_completion(required_flags, answers_by_index):
    if not required_flags:
        return 0
    basis = [i for i, required in enumerate(required_flags) if required] or list(range(len(required_flags)))
    answered = sum(1 for i in basis if (answers_by_index.get(i) or "").strip())
    # Half-up rounding in integer arithmetic
    return (answered * 200 + len(basis)) // (2 * len(basis))


@st.composite
def draft_forms(draw):
    required_flags = draw(form_shapes())
    answers = {}
    for index in range(len(required_flags)):
        if draw(st.booleans()):
            answers[index] = draw(answer_values)
    return required_flags, answers


class TestDraftProperties:

    @given(draft_forms())
    def test_completion_matches_answered_share(self, form):
        required_flags, answers = form
        note(f"required={required_flags} answers={answers}")

        with factories.fresh_session() as db:
            organization = factories.create_organization(db)
            cycle = factories.create_cycle(db, organization)
            questions = [
                factories.add_question(db, cycle, f"Q{i}", is_required=required)
                for i, required in enumerate(required_flags)
            ]
            payload = {str(questions[i].id): value for i, value in answers.items()}

            application = DraftService(retry_manager=factories.fast_retry_manager()).save_draft(
                db, uuid4(), organization.id, None, payload
            )

            assert 0 <= application.completion_percent <= 100
            assert application.completion_percent == _expected_completion(required_flags, answers)

    @given(draft_forms())
    def test_repeated_save_is_idempotent(self, form):
        required_flags, answers = form

        with factories.fresh_session() as db:
            organization = factories.create_organization(db)
            cycle = factories.create_cycle(db, organization)
            questions = [
                factories.add_question(db, cycle, f"Q{i}", is_required=required)
                for i, required in enumerate(required_flags)
            ]
            payload = {str(questions[i].id): value for i, value in answers.items()}
            service = DraftService(retry_manager=factories.fast_retry_manager())
            candidate_id = uuid4()

            first = service.save_draft(db, candidate_id, organization.id, None, payload)
            first_state = (
                first.completion_percent,
                sorted(
                    (str(r.question_id), r.text_response)
                    for r in db.query(ApplicationResponse).all()
                ),
            )

            second = service.save_draft(db, candidate_id, organization.id, None, payload)
            second_state = (
                second.completion_percent,
                sorted(
                    (str(r.question_id), r.text_response)
                    for r in db.query(ApplicationResponse).all()
                ),
            )

            assert first.id == second.id
            assert first_state == second_state
            assert db.query(Application).count() == 1

    @given(form_shapes(max_questions=6))
    def test_answering_every_required_question_completes_the_form(self, required_flags):
        with factories.fresh_session() as db:
            organization = factories.create_organization(db)
            cycle = factories.create_cycle(db, organization)
            questions = [
                factories.add_question(db, cycle, f"Q{i}", is_required=required)
                for i, required in enumerate(required_flags)
            ]
            targets = [q for q in questions if q.is_required] or questions

            application = DraftService(retry_manager=factories.fast_retry_manager()).save_draft(
                db, uuid4(), organization.id, None, {str(q.id): "answered" for q in targets}
            )

            assert application.completion_percent == (100 if questions else 0)
