"""Read queries over reviews. Submissions go through ``workflow_service.submit_review``."""

from __future__ import annotations

from parjis.core.exceptions import NotFoundError
from parjis.models import db
from parjis.models.project import Project
from parjis.models.review import Review
from parjis.models.user import User


def get_review(review_id: int) -> Review:
    review = db.session.get(Review, review_id)
    if not review:
        raise NotFoundError(resource="Review", resource_id=review_id)
    return review


def list_reviews_by_project(project_id: int) -> list[Review]:
    if not db.session.get(Project, project_id):
        raise NotFoundError(resource="Project", resource_id=project_id)
    return Review.query.filter_by(project_id=project_id).order_by(Review.id).all()


def list_reviews_by_reviewer(reviewer_id: int, *, pending_only: bool = False) -> list[Review]:
    if not db.session.get(User, reviewer_id):
        raise NotFoundError(resource="User", resource_id=reviewer_id)
    q = Review.query.filter_by(reviewer_id=reviewer_id)
    if pending_only:
        q = q.filter(Review.submitted_at.is_(None))
    return q.order_by(Review.id).all()
