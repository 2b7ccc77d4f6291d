"""
Storage and notification ports consumed by the review workflow.

The workflow service talks to storage only through ``ProjectRepository`` and
emits notifications only through ``NotificationSink``.  The production
adapter (``sql_repository``) stages every write on the SQLAlchemy session;
nothing becomes visible until ``commit()``.

Contract shared by every adapter:
    - load_* methods raise NotFoundError instead of returning None.
    - Writes are staged, never auto-committed.
    - ``lock_project`` serialises concurrent work on one project for the
      lifetime of the current transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from parjis.models.notification import NotificationType
from parjis.models.project import Project, ProjectReviewer, ProjectStatus
from parjis.models.review import Review
from parjis.models.user import User, UserRole


class ProjectRepository(ABC):
    """Read/write operations the workflow needs from storage."""

    @abstractmethod
    def load_project(self, project_id: int) -> Project:
        """Return the project or raise NotFoundError."""

    @abstractmethod
    def lock_project(self, project_id: int) -> Project:
        """Return the project, row-locked until commit/rollback."""

    @abstractmethod
    def load_review(self, review_id: int) -> Review:
        """Return the review or raise NotFoundError."""

    @abstractmethod
    def load_reviews_for_project(self, project_id: int) -> list[Review]:
        """Return every review attached to the project (possibly empty)."""

    @abstractmethod
    def load_reviewer_assignments(self, project_id: int) -> list[ProjectReviewer]:
        """Return the reviewer assignments of the project."""

    @abstractmethod
    def load_user(self, user_id: int) -> User:
        """Return the user or raise NotFoundError."""

    @abstractmethod
    def load_active_users_with_roles(self, roles: Iterable[UserRole]) -> list[User]:
        """Return active users holding any of ``roles``."""

    @abstractmethod
    def update_project_status(self, project: Project, status: ProjectStatus) -> Project:
        """Stage a status change on ``project``."""

    @abstractmethod
    def update_review(self, review: Review, fields: dict) -> Review:
        """Stage the given column values on ``review``."""

    @abstractmethod
    def append_history(self, project_id: int, user_id: int, action: str, details: str | None = None) -> None:
        """Stage one ProjectHistory row."""

    @abstractmethod
    def commit(self) -> None:
        """Make every staged write durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every staged write."""


class NotificationSink(ABC):
    """Accepts notify(user, event) instructions from the workflow."""

    @abstractmethod
    def notify(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        project_id: int | None = None,
    ) -> None:
        """Stage a notification for ``user_id``."""
