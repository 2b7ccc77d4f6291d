"""
SQLAlchemy adapters for the workflow ports.

Both adapters share the Flask-SQLAlchemy session, so history rows,
notification rows and the status change land in one transaction and commit
together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select

from parjis.core.exceptions import NotFoundError
from parjis.models import db
from parjis.models.history import write_history
from parjis.models.notification import Notification, NotificationType
from parjis.models.project import Project, ProjectReviewer, ProjectStatus
from parjis.models.review import Review
from parjis.models.user import User, UserRole
from parjis.services.ports import NotificationSink, ProjectRepository

logger = logging.getLogger(__name__)


class SqlProjectRepository(ProjectRepository):
    """ProjectRepository backed by ``db.session``."""

    def __init__(self, session=None):
        self._session = session or db.session

    # ── Reads ────────────────────────────────────────────────────────────

    def load_project(self, project_id: int) -> Project:
        project = self._session.get(Project, project_id)
        if project is None:
            raise NotFoundError(resource="Project", resource_id=project_id)
        return project

    def lock_project(self, project_id: int) -> Project:
        # Row lock on PostgreSQL; SQLite already holds its write lock from
        # BEGIN IMMEDIATE (parjis._begin_immediate_on_sqlite).
        # populate_existing: a row already in the identity map must be
        # refreshed from the locked read, not served stale.
        project = self._session.execute(
            select(Project)
            .where(Project.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if project is None:
            raise NotFoundError(resource="Project", resource_id=project_id)
        return project

    def load_review(self, review_id: int) -> Review:
        review = self._session.get(Review, review_id)
        if review is None:
            raise NotFoundError(resource="Review", resource_id=review_id)
        return review

    def load_reviews_for_project(self, project_id: int) -> list[Review]:
        return list(self._session.execute(
            select(Review)
            .where(Review.project_id == project_id)
            .order_by(Review.id)
            .execution_options(populate_existing=True)
        ).scalars().all())

    def load_reviewer_assignments(self, project_id: int) -> list[ProjectReviewer]:
        return list(self._session.execute(
            select(ProjectReviewer)
            .where(ProjectReviewer.project_id == project_id)
            .order_by(ProjectReviewer.id)
        ).scalars().all())

    def load_user(self, user_id: int) -> User:
        user = self._session.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    def load_active_users_with_roles(self, roles: Iterable[UserRole]) -> list[User]:
        role_values = [UserRole(r).value for r in roles]
        return list(self._session.execute(
            select(User)
            .where(User.role.in_(role_values), User.is_active.is_(True))
            .order_by(User.id)
        ).scalars().all())

    # ── Writes (staged) ──────────────────────────────────────────────────

    def update_project_status(self, project: Project, status: ProjectStatus) -> Project:
        project.status = ProjectStatus(status).value
        self._session.flush()
        return project

    def update_review(self, review: Review, fields: dict) -> Review:
        for key, value in fields.items():
            if not hasattr(Review, key):
                raise ValueError(f"Review has no column '{key}'")
            setattr(review, key, value)
        self._session.flush()
        return review

    def append_history(self, project_id: int, user_id: int, action: str, details: str | None = None) -> None:
        write_history(project_id=project_id, user_id=user_id, action=action, details=details)

    # ── Transaction control ──────────────────────────────────────────────

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()


class SqlNotificationSink(NotificationSink):
    """NotificationSink that stages Notification rows on the session."""

    def __init__(self, session=None):
        self._session = session or db.session

    def notify(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        project_id: int | None = None,
    ) -> None:
        self._session.add(Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            project_id=project_id,
            is_read=False,
        ))
        logger.debug(
            "Notification staged",
            extra={"user_id": user_id, "project_id": project_id, "event_type": NotificationType(type).value},
        )
