"""Draft store: in-progress applications and their answers."""

from datetime import datetime
from fractions import Fraction
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.core.database import transaction
from portal_backend.core.error_handling import (
    AlreadySubmittedError,
    ErrorContext,
    NoActiveCycleError,
    NotFoundError,
    RetryManager,
)
from portal_backend.models.application import Application, ApplicationResponse
from portal_backend.models.question import Question, QuestionType
from portal_backend.repositories.application import ApplicationRepository
from portal_backend.repositories.cycle import CycleRepository, OrganizationRepository
from portal_backend.repositories.question import QuestionRepository
from .dashboard_service import round_half_up

logger = structlog.get_logger(__name__)

# (text_response, selected_options, file_url)
NormalizedAnswer = Tuple[Optional[str], List[str], Optional[str]]


def _as_labels(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    labels: List[str] = []
    for item in value:
        label = str(item).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def _text_answer(question: Question, value: Any) -> NormalizedAnswer:
    if value is None:
        return None, [], None
    if isinstance(value, (list, tuple)):
        value = "\n".join(str(item) for item in value)
    return str(value), [], None


def _choice_labels(question: Question, value: Any) -> List[str]:
    labels = _as_labels(value)
    if question.options:
        # Labels removed from the question since the form was loaded are dropped.
        labels = [label for label in labels if label in question.options]
    return labels


def _single_select_answer(question: Question, value: Any) -> NormalizedAnswer:
    return None, _choice_labels(question, value)[:1], None


def _multi_select_answer(question: Question, value: Any) -> NormalizedAnswer:
    return None, _choice_labels(question, value), None


def _file_answer(question: Question, value: Any) -> NormalizedAnswer:
    reference = str(value).strip() if value is not None else ""
    return None, [], reference or None


ANSWER_NORMALIZERS: Dict[QuestionType, Callable[[Question, Any], NormalizedAnswer]] = {
    QuestionType.SHORT_TEXT: _text_answer,
    QuestionType.LONG_TEXT: _text_answer,
    QuestionType.SELECT: _single_select_answer,
    QuestionType.MULTI_SELECT: _multi_select_answer,
    QuestionType.FILE_UPLOAD: _file_answer,
}


def normalize_answer(question: Question, value: Any) -> NormalizedAnswer:
    """Map a raw client answer onto the response columns its question type uses."""
    return ANSWER_NORMALIZERS[question.kind](question, value)


def compute_completion(
    visible: Sequence[Question],
    responses: Mapping[UUID, ApplicationResponse]
) -> int:
    """Percentage (0-100) of the visible form that is answered.

    Required questions decide completion when the form has any; otherwise
    every visible question counts. An empty form is 0% complete.
    """
    if not visible:
        return 0

    basis = [question for question in visible if question.is_required] or list(visible)
    answered = 0
    for question in basis:
        response = responses.get(question.id)
        if response is not None and not response.is_blank:
            answered += 1
    return round_half_up(Fraction(answered * 100, len(basis)))


def _parse_question_id(key: Any) -> Optional[UUID]:
    if isinstance(key, UUID):
        return key
    try:
        return UUID(str(key))
    except ValueError:
        return None


class DraftService:
    """Service for saving and loading candidate drafts."""

    def __init__(self, retry_manager: Optional[RetryManager] = None):
        self.applications = ApplicationRepository()
        self.cycles = CycleRepository()
        self.organizations = OrganizationRepository()
        self.questions = QuestionRepository()
        self.retry_manager = retry_manager or RetryManager()

    def save_draft(
        self,
        db: Session,
        candidate_id: UUID,
        organization_id: UUID,
        subteam_id: Optional[UUID],
        answers: Mapping[Any, Any]
    ) -> Application:
        """Write the candidate's full current answer set to their draft.

        Saves are idempotent and transient store failures are retried.

        Raises:
            NoActiveCycleError: If the organization has no active cycle (soft failure)
            AlreadySubmittedError: If the application has left DRAFT; nothing is written
            NotFoundError: If the sub-group does not belong to the organization
        """
        context = ErrorContext(
            operation="save_draft",
            component="draft_store",
            user_id=str(candidate_id)
        )
        return self.retry_manager.retry(
            self._save_draft, db, candidate_id, organization_id, subteam_id, answers,
            context=context
        )

    def _save_draft(
        self,
        db: Session,
        candidate_id: UUID,
        organization_id: UUID,
        subteam_id: Optional[UUID],
        answers: Mapping[Any, Any]
    ) -> Application:
        with transaction(db):
            cycle = self.cycles.get_active_for_organization(db, organization_id)
            if cycle is None:
                logger.info(
                    "Draft save without active cycle",
                    candidate_id=str(candidate_id),
                    organization_id=str(organization_id)
                )
                raise NoActiveCycleError(organization_id)

            if subteam_id is not None:
                subteam = self.organizations.get_subteam(db, subteam_id)
                if subteam is None or subteam.organization_id != organization_id:
                    raise NotFoundError("Subteam", subteam_id)

            application, created = self.applications.get_or_create(
                db, candidate_id, cycle.id, subteam_id=subteam_id
            )
            if not application.is_draft:
                raise AlreadySubmittedError(application.id, application.status)

            keyed = {}
            for key, value in answers.items():
                question_id = _parse_question_id(key)
                if question_id is not None:
                    keyed[question_id] = value

            questions = self.questions.get_many_for_cycle(db, cycle.id, list(keyed))
            skipped = len(answers) - len(questions)
            existing = self.applications.get_responses(db, application.id)

            for question in questions:
                text_response, selected_options, file_url = normalize_answer(question, keyed[question.id])
                self.applications.upsert_response(
                    db,
                    application.id,
                    question.id,
                    text_response,
                    selected_options,
                    file_url,
                    existing=existing.get(question.id),
                )
            db.flush()

            # Each save carries the whole form; answers it omits are cleared.
            cleared = self.applications.delete_responses_except(
                db, application.id, [question.id for question in questions]
            )

            visible = self.questions.list_visible(db, cycle.id, subteam_id)
            responses = self.applications.get_responses(db, application.id)

            application.subteam_id = subteam_id
            application.completion_percent = compute_completion(visible, responses)
            application.last_saved_at = datetime.utcnow()
            db.flush()

        logger.info(
            "Draft saved",
            application_id=str(application.id),
            candidate_id=str(candidate_id),
            created=created,
            answers=len(questions),
            skipped=skipped,
            cleared=cleared,
            completion_percent=application.completion_percent
        )
        return application

    def get_draft(self, db: Session, candidate_id: UUID, organization_id: UUID) -> Optional[Application]:
        """The candidate's application to the organization's active cycle, if started.

        Raises:
            NoActiveCycleError: If the organization has no active cycle
        """
        cycle = self.cycles.get_active_for_organization(db, organization_id)
        if cycle is None:
            raise NoActiveCycleError(organization_id)
        return self.applications.get_for_candidate_cycle(db, candidate_id, cycle.id)

    def get_answers(self, db: Session, application: Application) -> Dict[str, Any]:
        """Stored responses in the shape the form submits them, for re-hydrating a draft."""
        answers: Dict[str, Any] = {}
        responses = self.applications.get_responses(db, application.id)
        for question_id, response in responses.items():
            if response.file_url:
                answers[str(question_id)] = response.file_url
            elif response.selected_options:
                answers[str(question_id)] = list(response.selected_options)
            else:
                answers[str(question_id)] = response.text_response
        return answers
