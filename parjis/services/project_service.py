"""Project CRUD service: creation with reviewer assignment, and read queries.

Status changes are not made here; see ``workflow_service``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import or_, select

from parjis.core.exceptions import NotFoundError, ValidationError
from parjis.models import db
from parjis.models.history import write_history
from parjis.models.project import Project, ProjectReviewer, ProjectStatus
from parjis.models.review import Review
from parjis.models.user import User, UserRole

logger = logging.getLogger(__name__)

_REQUIRED_TEXT = ("name", "description", "objective", "target_time")


def _parse_cost(value) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        cost = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return cost if cost.is_finite() else None


def _validate_reviewers(reviewer_ids) -> list[int]:
    if not isinstance(reviewer_ids, list) or not reviewer_ids:
        raise ValidationError(
            "At least one reviewer is required", details={"reviewer_ids": "required"},
        )
    if any(not isinstance(r, int) or isinstance(r, bool) for r in reviewer_ids):
        raise ValidationError(
            "reviewer_ids must be a list of user ids", details={"reviewer_ids": "invalid"},
        )

    unique_ids = list(dict.fromkeys(reviewer_ids))
    found = {u.id: u for u in User.query.filter(User.id.in_(unique_ids)).all()}
    problems = {}
    for rid in unique_ids:
        user = found.get(rid)
        if user is None:
            problems[str(rid)] = "not found"
        elif not user.is_active:
            problems[str(rid)] = "inactive"
        elif user.role != UserRole.REVIEWER.value:
            problems[str(rid)] = f"role is {user.role}, not reviewer"
    if problems:
        raise ValidationError("Invalid reviewer assignment", details={"reviewer_ids": problems})
    return unique_ids


def create_project(data: dict) -> Project:
    """Create a draft project, assign its reviewers and open one empty review each.

    Body keys: name, description, objective, estimated_cost, target_time,
    proposer_id, reviewer_ids.
    """
    errors = {}
    text = {}
    for field in _REQUIRED_TEXT:
        value = str(data.get(field) or "").strip()
        if not value:
            errors[field] = "required"
        text[field] = value

    cost = _parse_cost(data.get("estimated_cost"))
    if cost is None:
        errors["estimated_cost"] = "must be a number"
    elif cost <= 0:
        errors["estimated_cost"] = "must be positive"

    proposer_id = data.get("proposer_id")
    if not isinstance(proposer_id, int) or isinstance(proposer_id, bool):
        errors["proposer_id"] = "required"

    if errors:
        raise ValidationError("Invalid project data", details=errors)

    proposer = db.session.get(User, proposer_id)
    if not proposer:
        raise NotFoundError(resource="User", resource_id=proposer_id)

    reviewer_ids = _validate_reviewers(data.get("reviewer_ids"))

    project = Project(
        name=text["name"],
        description=text["description"],
        objective=text["objective"],
        target_time=text["target_time"],
        estimated_cost=cost,
        status=ProjectStatus.DRAFT.value,
        proposer_id=proposer.id,
    )
    db.session.add(project)
    db.session.flush()

    for rid in reviewer_ids:
        db.session.add(ProjectReviewer(project_id=project.id, reviewer_id=rid))
        db.session.add(Review(project_id=project.id, reviewer_id=rid))

    write_history(
        project_id=project.id,
        user_id=proposer.id,
        action="project_created",
        details=f'Project "{project.name}" was created',
    )
    db.session.commit()

    logger.info(
        "Project created with %d reviewer(s)", len(reviewer_ids),
        extra={"project_id": project.id, "user_id": proposer.id, "event_type": "project_created"},
    )
    return project


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def list_projects(*, status: str | None = None) -> list[Project]:
    q = Project.query
    if status:
        q = q.filter(Project.status == status)
    return q.order_by(Project.created_at.desc(), Project.id.desc()).all()


def list_projects_by_user(user_id: int) -> list[Project]:
    """Projects the user proposed or is assigned to review, each listed once."""
    assigned = select(ProjectReviewer.project_id).where(ProjectReviewer.reviewer_id == user_id)
    return (
        Project.query
        .filter(or_(Project.proposer_id == user_id, Project.id.in_(assigned)))
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )


def list_project_reviewers(project_id: int) -> list[User]:
    get_project(project_id)
    return (
        User.query
        .join(ProjectReviewer, ProjectReviewer.reviewer_id == User.id)
        .filter(ProjectReviewer.project_id == project_id)
        .order_by(ProjectReviewer.id)
        .all()
    )
