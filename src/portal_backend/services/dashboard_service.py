"""Aggregation layer: score averages and stage counts for dashboards.

Everything here is derived on read; no counters are cached.
"""

from fractions import Fraction
from math import floor
from typing import Dict, Iterable, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.orm import Session
import structlog

from portal_backend.models.application import ApplicationStatus, PIPELINE_STATUSES
from portal_backend.repositories.application import ApplicationRepository
from portal_backend.repositories.cycle import CycleRepository
from portal_backend.repositories.review import ScoreRepository
from portal_backend.schemas.review import CandidateStats, ScoreSummary, StageCounts

logger = structlog.get_logger(__name__)

Number = Union[int, Fraction]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer with halves rounded up (4.5 -> 5, 2.5 -> 3)."""
    return floor(Fraction(value) + Fraction(1, 2))


def mean_score(values: Iterable[int]) -> Tuple[Optional[Fraction], Optional[int]]:
    """Exact mean and its rounded display value; ``(None, None)`` without scores."""
    values = list(values)
    if not values:
        return None, None
    mean = Fraction(sum(values), len(values))
    return mean, round_half_up(mean)


class DashboardService:
    """Service for reviewer and candidate dashboard figures."""

    def __init__(self):
        self.applications = ApplicationRepository()
        self.cycles = CycleRepository()
        self.scores = ScoreRepository()

    def average_score(self, db: Session, application_id: UUID) -> Optional[int]:
        """Mean of the current per-reviewer scores rounded half-up, or None if unscored."""
        return self.score_summary(db, application_id).average

    def score_summary(self, db: Session, application_id: UUID) -> ScoreSummary:
        """Score count, exact mean and display average of an application.

        Raises:
            NotFoundError: If the application does not exist
        """
        self.applications.get_or_raise(db, application_id)
        values = self.scores.values_for_applications(db, [application_id])[application_id]
        mean, average = mean_score(values)
        return ScoreSummary(
            application_id=application_id,
            review_count=len(values),
            mean=float(mean) if mean is not None else None,
            average=average,
        )

    def stage_counts(self, db: Session, organization_id: UUID) -> StageCounts:
        """Non-draft applications of the organization's active cycle, by status.

        Every pipeline status is present, zero-filled. Without an active
        cycle all counts are zero.
        """
        cycle = self.cycles.get_active_for_organization(db, organization_id)
        observed: Dict[str, int] = {}
        if cycle is not None:
            observed = self.applications.count_by_status(db, cycle.id)

        counts = {status.value: observed.get(status.value, 0) for status in PIPELINE_STATUSES}
        return StageCounts(
            organization_id=organization_id,
            cycle_id=cycle.id if cycle is not None else None,
            counts=counts,
            total=sum(counts.values()),
        )

    def candidate_stats(self, db: Session, candidate_id: UUID) -> CandidateStats:
        """Drafts started, applications submitted and interviews for a candidate."""
        counts = self.applications.count_for_candidate_by_status(db, candidate_id)
        drafts = counts.get(ApplicationStatus.DRAFT.value, 0)
        submitted = sum(count for status, count in counts.items() if status != ApplicationStatus.DRAFT.value)
        return CandidateStats(
            candidate_id=candidate_id,
            drafts=drafts,
            submitted=submitted,
            interviews=counts.get(ApplicationStatus.INTERVIEW.value, 0),
        )
