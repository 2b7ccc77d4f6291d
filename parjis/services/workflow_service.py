"""
Project review & approval workflow — the four state-changing operations.

    submit_project(project_id, user_id)          draft -> submitted
    submit_review(data)                          reviewer decision (+ aggregation)
    approve_project(project_id, user_id)         under_review -> approved
    reject_project(project_id, user_id, reason)  under_review -> rejected

Every operation is one unit of work with a fixed order:

    1. lock the project row (serialises work on the same project)
    2. validate (transition_authority); on failure nothing is written
    3. mutate project / review state
    4. aggregate the review set (submit_review only)
    5. stage notifications
    6. stage history rows
    7. commit once

Notifications and history share the transaction with the status change, so
they become visible only together with it; any exception rolls all of it
back.  The caller that completes the review set is the one whose
``submit_review`` call observes ``aggregate(...).complete`` under the lock;
this is the only place the final status is derived automatically.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from parjis.core.exceptions import NotFoundError, ValidationError
from parjis.models.notification import NotificationType
from parjis.models.project import ProjectStatus
from parjis.models.review import REVIEW_DECISIONS, RISK_LEVELS
from parjis.models.user import UserRole
from parjis.services import transition_authority as authority
from parjis.services.ports import NotificationSink, ProjectRepository
from parjis.services.review_aggregation import aggregate
from parjis.services.sql_repository import SqlNotificationSink, SqlProjectRepository

logger = logging.getLogger(__name__)

_REQUIRED_REVIEW_TEXT = ("justification", "risk_identification", "risk_mitigation")

_FINAL_NOTIFICATION = {
    ProjectStatus.APPROVED: (
        NotificationType.PROJECT_APPROVED,
        'Your project "{name}" has been approved by all reviewers',
    ),
    ProjectStatus.REJECTED: (
        NotificationType.PROJECT_REJECTED,
        'Your project "{name}" has been rejected by reviewers',
    ),
    ProjectStatus.RETURNED: (
        NotificationType.PROJECT_RETURNED,
        'Your project "{name}" has been returned by reviewers for revisions',
    ),
}


def validate_review_input(data: dict) -> dict:
    """Check a review submission payload and return the normalised fields.

    Raises:
        ValidationError: with a per-field ``details`` breakdown.
    """
    errors: dict[str, str] = {}

    review_id = data.get("id")
    if not isinstance(review_id, int) or isinstance(review_id, bool):
        errors["id"] = "must be an integer"

    decision = data.get("decision")
    if decision not in REVIEW_DECISIONS:
        errors["decision"] = f"must be one of {sorted(REVIEW_DECISIONS)}"

    risk_assessment = data.get("risk_assessment")
    if risk_assessment not in RISK_LEVELS:
        errors["risk_assessment"] = f"must be one of {sorted(RISK_LEVELS)}"

    text = {}
    for field in _REQUIRED_REVIEW_TEXT:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            errors[field] = "is required"
        else:
            text[field] = value.strip()

    comments = data.get("comments")
    if comments is not None and not isinstance(comments, str):
        errors["comments"] = "must be a string"

    if errors:
        raise ValidationError("Invalid review submission", details=errors)

    return {
        "id": review_id,
        "decision": decision,
        "risk_assessment": risk_assessment,
        "comments": (comments or "").strip() or None,
        **text,
    }


class WorkflowService:
    """Orchestrates the project state machine over the storage/notification ports."""

    def __init__(self, repository: ProjectRepository | None = None, sink: NotificationSink | None = None):
        self.repo = repository or SqlProjectRepository()
        self.sink = sink or SqlNotificationSink()

    @contextmanager
    def _unit_of_work(self, operation: str, **context):
        try:
            yield
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            logger.info("Workflow operation aborted: %s", operation, extra=context)
            raise

    # ── Proposer ─────────────────────────────────────────────────────────

    def submit_project(self, project_id: int, user_id: int):
        with self._unit_of_work("submit_project", project_id=project_id, user_id=user_id):
            project = self.repo.lock_project(project_id)
            user = self.repo.load_user(user_id)
            authority.check_can_submit_project(project, user)

            self.repo.update_project_status(project, ProjectStatus.SUBMITTED)

            for assignment in self.repo.load_reviewer_assignments(project.id):
                self.sink.notify(
                    assignment.reviewer_id,
                    NotificationType.PROJECT_SUBMITTED,
                    "New Project Submitted for Review",
                    f'Project "{project.name}" has been submitted and requires your review.',
                    project_id=project.id,
                )

            self.repo.append_history(
                project.id, user.id, "Project Submitted",
                f'Project "{project.name}" was submitted for review',
            )

        logger.info(
            "Project submitted",
            extra={"project_id": project.id, "user_id": user_id, "event_type": "project_submitted"},
        )
        return project

    # ── Reviewer ─────────────────────────────────────────────────────────

    def submit_review(self, data: dict):
        fields = validate_review_input(data)
        review_id = fields["id"]

        with self._unit_of_work("submit_review", review_id=review_id):
            project_id = self.repo.load_review(review_id).project_id
            project = self.repo.lock_project(project_id)

            # Re-read under the lock so a concurrent submission is visible.
            reviews = self.repo.load_reviews_for_project(project.id)
            review = next((r for r in reviews if r.id == review_id), None)
            if review is None:
                raise NotFoundError(resource="Review", resource_id=review_id)
            authority.check_can_submit_review(project, review)

            reviewer = self.repo.load_user(review.reviewer_id)
            started_review = project.status == ProjectStatus.SUBMITTED.value
            if started_review:
                authority.require_transition(project, ProjectStatus.UNDER_REVIEW, "start review of")
                self.repo.update_project_status(project, ProjectStatus.UNDER_REVIEW)

            now = datetime.now(timezone.utc)
            self.repo.update_review(review, {
                "decision": fields["decision"],
                "justification": fields["justification"],
                "risk_identification": fields["risk_identification"],
                "risk_assessment": fields["risk_assessment"],
                "risk_mitigation": fields["risk_mitigation"],
                "comments": fields["comments"],
                "submitted_at": now,
            })

            result = aggregate(reviews)
            if result.complete:
                authority.require_transition(project, result.status, "finalise")
                self.repo.update_project_status(project, result.status)

            self.sink.notify(
                project.proposer_id,
                NotificationType.REVIEW_COMPLETED,
                "Review Completed",
                f'{reviewer.name} has completed their review of your project "{project.name}" '
                f"with decision: {fields['decision']}",
                project_id=project.id,
            )
            if result.complete:
                self._notify_final_outcome(project, result.status)

            if started_review:
                self.repo.append_history(
                    project.id, reviewer.id, "Review Started",
                    f"Project moved to {ProjectStatus.UNDER_REVIEW.value}",
                )
            self.repo.append_history(
                project.id, reviewer.id,
                f"Review submitted with decision: {fields['decision']}",
                f"Justification: {fields['justification']}",
            )
            if result.complete:
                self.repo.append_history(
                    project.id, reviewer.id,
                    f"Project status changed to {result.status.value}",
                    f"All reviews completed. Final status: {result.status.value}",
                )

        logger.info(
            "Review submitted",
            extra={
                "project_id": project.id,
                "user_id": review.reviewer_id,
                "event_type": "review_submitted",
            },
        )
        if result.complete:
            logger.info(
                "Review round complete: project %s -> %s", project.id, result.status.value,
                extra={"project_id": project.id, "event_type": f"project_{result.status.value}"},
            )
        return review

    def _notify_final_outcome(self, project, status: ProjectStatus) -> None:
        notification_type, template = _FINAL_NOTIFICATION[status]
        self.sink.notify(
            project.proposer_id,
            notification_type,
            f"Project {status.value.capitalize()}",
            template.format(name=project.name),
            project_id=project.id,
        )
        if status != ProjectStatus.APPROVED:
            return

        deciders = self.repo.load_active_users_with_roles(
            [UserRole.DIRECTOR, UserRole.SYSTEM_ADMINISTRATOR]
        )
        for user in deciders:
            self.sink.notify(
                user.id,
                NotificationType.PROJECT_APPROVED,
                "Project Approved",
                f'Project "{project.name}" has been approved by all reviewers '
                "and is ready for implementation",
                project_id=project.id,
            )

    # ── Director / system administrator ──────────────────────────────────

    def approve_project(self, project_id: int, user_id: int):
        with self._unit_of_work("approve_project", project_id=project_id, user_id=user_id):
            user = self.repo.load_user(user_id)
            # Role first: an unauthorised caller must not learn whether the project exists.
            authority.check_can_decide(user)
            project = self.repo.lock_project(project_id)
            reviews = self.repo.load_reviews_for_project(project.id)
            authority.check_can_approve_project(project, user, reviews)

            self.repo.update_project_status(project, ProjectStatus.APPROVED)

            self._notify_decision(
                project,
                NotificationType.PROJECT_APPROVED,
                "Project Approved",
                proposer_message=f'Your project "{project.name}" has been approved.',
                reviewer_message=f'The project "{project.name}" you reviewed has been approved.',
            )
            self.repo.append_history(
                project.id, user.id, "Project Approved",
                f"Project approved by {user.role}: {user.name}",
            )

        logger.info(
            "Project approved",
            extra={"project_id": project.id, "user_id": user_id, "event_type": "project_approved"},
        )
        return project

    def reject_project(self, project_id: int, user_id: int, reason: str):
        with self._unit_of_work("reject_project", project_id=project_id, user_id=user_id):
            user = self.repo.load_user(user_id)
            authority.check_can_decide(user)
            project = self.repo.lock_project(project_id)
            authority.check_can_reject_project(project, user, reason)
            reason = reason.strip()

            self.repo.update_project_status(project, ProjectStatus.REJECTED)

            self._notify_decision(
                project,
                NotificationType.PROJECT_REJECTED,
                "Project Rejected",
                proposer_message=f'Your project "{project.name}" has been rejected. Reason: {reason}',
                reviewer_message=(
                    f'The project "{project.name}" you reviewed has been rejected. Reason: {reason}'
                ),
            )
            self.repo.append_history(
                project.id, user.id, "Project Rejected",
                f"Project rejected by {user.role}: {user.name}. Reason: {reason}",
            )

        logger.info(
            "Project rejected",
            extra={"project_id": project.id, "user_id": user_id, "event_type": "project_rejected"},
        )
        return project

    def _notify_decision(self, project, notification_type, title, *, proposer_message, reviewer_message):
        self.sink.notify(project.proposer_id, notification_type, title, proposer_message, project_id=project.id)
        for assignment in self.repo.load_reviewer_assignments(project.id):
            self.sink.notify(
                assignment.reviewer_id, notification_type, title, reviewer_message, project_id=project.id,
            )


# ── Module-level API (default SQL adapters) ──────────────────────────────────


def submit_project(project_id: int, user_id: int):
    return WorkflowService().submit_project(project_id, user_id)


def submit_review(data: dict):
    return WorkflowService().submit_review(data)


def approve_project(project_id: int, user_id: int):
    return WorkflowService().approve_project(project_id, user_id)


def reject_project(project_id: int, user_id: int, reason: str):
    return WorkflowService().reject_project(project_id, user_id, reason)
