"""
Review aggregation — derives one project outcome from independent reviews.

Rules (evaluated over the full review set of one project):

    complete   iff every review has ``submitted_at`` set
               (an empty set is vacuously complete)

    resolution, only when complete, first match wins:
        1. any ``reject``          -> rejected
        2. else any ``return``     -> returned
        3. else all ``approve``    -> approved
        4. otherwise               -> AggregationIntegrityError

This is a precedence rule, not a vote count: a single reject outweighs any
number of approvals.  The function is pure and order-independent; it only
reads ``submitted_at``, ``decision`` and ``id`` from each review, so plain
objects work as well as ORM rows.

Usage:
    from parjis.services.review_aggregation import aggregate

    result = aggregate(project.reviews)
    if result.complete:
        new_status = result.status
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from parjis.core.exceptions import AggregationIntegrityError
from parjis.models.project import ProjectStatus
from parjis.models.review import ReviewDecision


@dataclass(frozen=True)
class AggregateResult:
    """Outcome of one aggregation pass. ``status`` is None while incomplete."""

    complete: bool
    status: ProjectStatus | None = None

    def to_dict(self) -> dict:
        return {
            "complete": self.complete,
            "status": self.status.value if self.status else None,
        }


INCOMPLETE = AggregateResult(complete=False)


def _decision_of(review) -> ReviewDecision | None:
    value = getattr(review, "decision", None)
    return ReviewDecision(value) if value is not None else None


def is_complete(reviews: Iterable) -> bool:
    """True when no review in ``reviews`` is still pending."""
    return all(getattr(r, "submitted_at", None) is not None for r in reviews)


def count_decisions(reviews: Iterable) -> Counter:
    """Count submitted decisions by kind; pending reviews are not counted."""
    submitted = (r for r in reviews if getattr(r, "submitted_at", None) is not None)
    return Counter(
        decision for decision in (_decision_of(r) for r in submitted) if decision is not None
    )


def aggregate(reviews: Iterable) -> AggregateResult:
    """Compute whether the review round is complete and, if so, its outcome.

    Args:
        reviews: The full review set for one project.  May be empty.

    Returns:
        AggregateResult(complete=False) while any review is pending, else
        AggregateResult(complete=True, status=approved|rejected|returned).

    Raises:
        AggregationIntegrityError: a submitted review carries no decision.
    """
    reviews = list(reviews)
    if not is_complete(reviews):
        return INCOMPLETE

    decisions = count_decisions(reviews)
    if decisions[ReviewDecision.REJECT]:
        return AggregateResult(complete=True, status=ProjectStatus.REJECTED)
    if decisions[ReviewDecision.RETURN]:
        return AggregateResult(complete=True, status=ProjectStatus.RETURNED)
    if decisions[ReviewDecision.APPROVE] == len(reviews):
        return AggregateResult(complete=True, status=ProjectStatus.APPROVED)

    raise AggregationIntegrityError(
        [getattr(r, "id", None) for r in reviews if _decision_of(r) is None]
    )
