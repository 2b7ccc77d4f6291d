"""
Transition authority — who may move a project, from which status, and when.

Every check either returns None or raises a typed error naming the violated
rule (parjis.core.exceptions).  Nothing here touches storage; callers load
the project, user and reviews and hand them in.

Check order matters and is part of the contract:
    submit_project   identity  -> status
    submit_review    status    -> review not yet submitted
    approve_project  role      -> status -> reviews complete -> all approve
    reject_project   role      -> status -> reason present
Role is checked before status on the director paths so an unauthorised
caller learns nothing about the project's state.
"""

from __future__ import annotations

from parjis.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    ReviewAlreadySubmittedError,
    ReviewsIncompleteError,
    ReviewsNotAllApprovedError,
    ValidationError,
)
from parjis.models.project import PROJECT_TRANSITIONS, ProjectStatus, validate_project_transition
from parjis.models.review import ReviewDecision
from parjis.models.user import UserRole
from parjis.services.review_aggregation import aggregate, count_decisions

REVIEWABLE_STATUSES = (ProjectStatus.SUBMITTED, ProjectStatus.UNDER_REVIEW)


def can_issue_final_decision(role: UserRole | str) -> bool:
    """Return True if ``role`` may approve or reject a project outright."""
    match UserRole(role):
        case UserRole.DIRECTOR | UserRole.SYSTEM_ADMINISTRATOR:
            return True
        case UserRole.PROJECT_PROPOSER | UserRole.REVIEWER:
            return False


def require_transition(project, target: ProjectStatus, action: str) -> None:
    """Raise InvalidStateError unless ``project.status -> target`` is an edge."""
    if not validate_project_transition(project.status, target):
        required = [
            status.value for status, targets in PROJECT_TRANSITIONS.items() if target in targets
        ]
        raise InvalidStateError(action, current_status=project.status, required=required)


# ── Proposer ─────────────────────────────────────────────────────────────────


def check_can_submit_project(project, user) -> None:
    """Only the proposer may submit, and only from draft."""
    if user.id != project.proposer_id:
        raise ForbiddenError("Only the project proposer can submit the project", user_id=user.id)
    require_transition(project, ProjectStatus.SUBMITTED, "submit")


# ── Reviewer ─────────────────────────────────────────────────────────────────


def check_can_submit_review(project, review) -> None:
    """A review may be submitted once, while the project is open for review."""
    if ProjectStatus(project.status) not in REVIEWABLE_STATUSES:
        raise InvalidStateError(
            "review",
            current_status=project.status,
            required=[s.value for s in REVIEWABLE_STATUSES],
        )
    if review.submitted_at is not None:
        raise ReviewAlreadySubmittedError(review.id)


# ── Director / system administrator ──────────────────────────────────────────


def check_can_decide(user) -> None:
    if not can_issue_final_decision(user.role):
        raise ForbiddenError(
            "Insufficient permissions: only directors and system administrators "
            "can approve or reject projects",
            user_id=user.id,
        )


def check_can_approve_project(project, user, reviews) -> None:
    """Explicit approval confirms the aggregated outcome; it never overrides it."""
    check_can_decide(user)
    require_transition(project, ProjectStatus.APPROVED, "approve")

    reviews = list(reviews)
    if not reviews:
        raise ReviewsIncompleteError("Cannot approve project: no reviews found for this project")

    pending = [r.id for r in reviews if r.submitted_at is None]
    if pending:
        raise ReviewsIncompleteError(
            "Cannot approve project: some reviews are not yet submitted",
            pending_review_ids=pending,
        )

    decisions = count_decisions(reviews)
    if decisions[ReviewDecision.REJECT] or decisions[ReviewDecision.RETURN]:
        raise ReviewsNotAllApprovedError(
            "Cannot approve project: some reviews have rejected or returned the project",
            decisions={d.value: n for d, n in decisions.items()},
        )

    # Same predicate as the automatic path; raises on corrupt review rows.
    result = aggregate(reviews)
    if result.status != ProjectStatus.APPROVED:
        raise ReviewsNotAllApprovedError(
            "Cannot approve project: reviews do not resolve to approval",
            decisions={d.value: n for d, n in decisions.items()},
        )


def check_can_reject_project(project, user, reason: str | None) -> None:
    """Directors may reject an under-review project whatever the reviews say."""
    check_can_decide(user)
    require_transition(project, ProjectStatus.REJECTED, "reject")
    if not (reason or "").strip():
        raise ValidationError("A reason is required to reject a project", details={"reason": "required"})
