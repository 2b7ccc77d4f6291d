"""
Comment Service — threaded discussion on a project.

A new comment notifies the proposer and every assigned reviewer, except the
author, with a ``comment_added`` notification committed alongside it.
"""

from __future__ import annotations

import logging

from parjis.core.exceptions import NotFoundError, ValidationError
from parjis.models import db
from parjis.models.comment import Comment
from parjis.models.notification import NotificationType
from parjis.models.project import Project, ProjectReviewer
from parjis.models.user import User
from parjis.services.notification import NotificationService

logger = logging.getLogger(__name__)


def create_comment(data: dict) -> Comment:
    content = str(data.get("content") or "").strip()
    if not content:
        raise ValidationError("content is required", details={"content": "required"})
    for field in ("project_id", "user_id"):
        value = data.get(field)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValidationError(f"{field} is required", details={field: "required"})

    project = db.session.get(Project, data.get("project_id"))
    if not project:
        raise NotFoundError(resource="Project", resource_id=data.get("project_id"))
    author = db.session.get(User, data.get("user_id"))
    if not author:
        raise NotFoundError(resource="User", resource_id=data.get("user_id"))

    parent_id = data.get("parent_comment_id")
    if parent_id is not None:
        if not isinstance(parent_id, int) or isinstance(parent_id, bool):
            raise ValidationError("parent_comment_id must be an integer", details={"parent_comment_id": "invalid"})
        parent = db.session.get(Comment, parent_id)
        if not parent:
            raise NotFoundError(resource="Comment", resource_id=parent_id)
        if parent.project_id != project.id:
            raise ValidationError(
                "Parent comment belongs to a different project",
                details={"parent_comment_id": "wrong project"},
            )

    comment = Comment(
        project_id=project.id,
        user_id=author.id,
        content=content,
        parent_comment_id=parent_id,
    )
    db.session.add(comment)

    reviewer_ids = [
        a.reviewer_id for a in ProjectReviewer.query.filter_by(project_id=project.id).all()
    ]
    recipients = [uid for uid in [project.proposer_id, *reviewer_ids] if uid != author.id]
    NotificationService.notify_users(
        recipients,
        type=NotificationType.COMMENT_ADDED,
        title="New Comment",
        message=f'{author.name} commented on project "{project.name}"',
        project_id=project.id,
    )
    db.session.commit()

    logger.info(
        "Comment added",
        extra={"project_id": project.id, "user_id": author.id, "event_type": "comment_added"},
    )
    return comment


def get_comment(comment_id: int) -> Comment:
    comment = db.session.get(Comment, comment_id)
    if not comment:
        raise NotFoundError(resource="Comment", resource_id=comment_id)
    return comment


def list_comments_by_project(project_id: int) -> list[Comment]:
    """All comments of a project, oldest first, flat (replies included)."""
    if not db.session.get(Project, project_id):
        raise NotFoundError(resource="Project", resource_id=project_id)
    return (
        Comment.query
        .filter_by(project_id=project_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
