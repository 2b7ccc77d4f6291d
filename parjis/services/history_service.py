"""Project history queries. Rows are written by ``models.history.write_history``."""

from __future__ import annotations

from parjis.core.exceptions import NotFoundError
from parjis.models import db
from parjis.models.history import ProjectHistory
from parjis.models.project import Project


def list_project_history(project_id: int) -> list[ProjectHistory]:
    """Return the project's history, newest entry first."""
    if not db.session.get(Project, project_id):
        raise NotFoundError(resource="Project", resource_id=project_id)
    return (
        ProjectHistory.query
        .filter_by(project_id=project_id)
        .order_by(ProjectHistory.created_at.desc(), ProjectHistory.id.desc())
        .all()
    )
