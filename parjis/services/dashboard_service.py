"""
Dashboard Service — role-shaped landing data for one user.

  - project_proposer:     own projects, how many are still in review
  - reviewer:             assigned projects, own pending reviews
  - director:             projects under review awaiting a final decision
  - system_administrator: every project

``completed_reviews`` counts submitted reviews on the projects the view
lists; a reviewer's count is their own submissions.
"""

from sqlalchemy import select

from parjis.models.project import Project, ProjectReviewer, ProjectStatus
from parjis.models.review import Review
from parjis.models.user import UserRole
from parjis.services.notification import NotificationService
from parjis.services.user_service import get_user

RECENT_NOTIFICATION_COUNT = 5

_IN_REVIEW = (ProjectStatus.SUBMITTED.value, ProjectStatus.UNDER_REVIEW.value)


def _newest_first(q):
    return q.order_by(Project.created_at.desc(), Project.id.desc()).all()


def _completed_reviews(*criteria):
    return (
        Review.query.join(Project, Project.id == Review.project_id)
        .filter(Review.submitted_at.isnot(None), *criteria)
        .count()
    )


def _proposer_view(user):
    projects = _newest_first(Project.query.filter_by(proposer_id=user.id))
    completed = _completed_reviews(Project.proposer_id == user.id)
    pending_approvals = sum(1 for p in projects if p.status in _IN_REVIEW)
    return projects, [], pending_approvals, completed


def _reviewer_view(user):
    assigned = select(ProjectReviewer.project_id).where(ProjectReviewer.reviewer_id == user.id)
    projects = _newest_first(Project.query.filter(Project.id.in_(assigned)))
    pending_reviews = (
        Review.query.join(Project, Project.id == Review.project_id)
        .filter(
            Review.reviewer_id == user.id,
            Review.submitted_at.is_(None),
            Project.status.in_(_IN_REVIEW),
        )
        .order_by(Review.id)
        .all()
    )
    completed = _completed_reviews(Review.reviewer_id == user.id)
    return projects, pending_reviews, len(pending_reviews), completed


def _director_view(user):
    under_review = Project.status == ProjectStatus.UNDER_REVIEW.value
    projects = _newest_first(Project.query.filter(under_review))
    return projects, [], len(projects), _completed_reviews(under_review)


def _administrator_view(user):
    projects = _newest_first(Project.query)
    pending_approvals = sum(1 for p in projects if p.status in _IN_REVIEW)
    return projects, [], pending_approvals, _completed_reviews()


def get_dashboard_data(user_id: int) -> dict:
    """Build the dashboard payload for ``user_id`` according to their role."""
    user = get_user(user_id)

    match user.user_role:
        case UserRole.PROJECT_PROPOSER:
            view = _proposer_view
        case UserRole.REVIEWER:
            view = _reviewer_view
        case UserRole.DIRECTOR:
            view = _director_view
        case UserRole.SYSTEM_ADMINISTRATOR:
            view = _administrator_view

    projects, pending_reviews, pending_approvals, completed_reviews = view(user)
    recent, _ = NotificationService.list_for_user(user.id, limit=RECENT_NOTIFICATION_COUNT)

    return {
        "user": user.to_dict(),
        "projects": [p.to_dict() for p in projects],
        "pending_reviews": [r.to_dict() for r in pending_reviews],
        "recent_notifications": [n.to_dict() for n in recent],
        "stats": {
            "total_projects": len(projects),
            "pending_approvals": pending_approvals,
            "completed_reviews": completed_reviews,
            "unread_notifications": NotificationService.unread_count(user.id),
        },
    }
