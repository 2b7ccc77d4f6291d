"""
Project domain model — the root entity of the review workflow.

Models:
    - Project: a proposal moving through the approval lifecycle
    - ProjectReviewer: reviewer assignment, one row per (project, reviewer)

Lifecycle (PROJECT_TRANSITIONS):
    draft        -> submitted
    submitted    -> under_review
    under_review -> approved | rejected | returned
    approved / rejected / returned -> (terminal)
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from parjis.models import db


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


PROJECT_STATUSES = frozenset(s.value for s in ProjectStatus)

PROJECT_TRANSITIONS = {
    ProjectStatus.DRAFT:        [ProjectStatus.SUBMITTED],
    ProjectStatus.SUBMITTED:    [ProjectStatus.UNDER_REVIEW],
    ProjectStatus.UNDER_REVIEW: [ProjectStatus.APPROVED, ProjectStatus.REJECTED, ProjectStatus.RETURNED],
    ProjectStatus.APPROVED:     [],
    ProjectStatus.REJECTED:     [],
    ProjectStatus.RETURNED:     [],
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in PROJECT_TRANSITIONS.items() if not targets
)


def validate_project_transition(old_status, new_status):
    """Return True if the Project status transition is valid."""
    return ProjectStatus(new_status) in PROJECT_TRANSITIONS.get(ProjectStatus(old_status), [])


class Project(db.Model):
    """
    Project proposal.

    Business rules:
    - Created in ``draft`` by a proposer; never physically deleted.
    - ``status`` is only changed by the workflow service.
    - ``estimated_cost`` is strictly positive.
    """

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=False)
    objective = db.Column(db.Text, nullable=False)
    estimated_cost = db.Column(db.Numeric(12, 2), nullable=False)
    target_time = db.Column(db.String(100), nullable=False, comment="Free-text duration, e.g. '6 months'")
    status = db.Column(
        db.String(20), nullable=False, default=ProjectStatus.DRAFT.value, index=True,
        comment="draft | submitted | under_review | approved | rejected | returned",
    )
    proposer_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint("estimated_cost > 0", name="ck_projects_estimated_cost_positive"),
    )

    proposer = db.relationship("User", foreign_keys=[proposer_id])
    reviewer_assignments = db.relationship(
        "ProjectReviewer", back_populates="project",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="ProjectReviewer.id",
    )
    reviews = db.relationship(
        "Review", back_populates="project",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Review.id",
    )

    def to_dict(self) -> dict:
        cost = self.estimated_cost
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "objective": self.objective,
            "estimated_cost": float(cost) if isinstance(cost, Decimal) else cost,
            "target_time": self.target_time,
            "status": self.status,
            "proposer_id": self.proposer_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name[:40]} [{self.status}]>"


class ProjectReviewer(db.Model):
    """Reviewer assignment. Fixed at project creation."""

    __tablename__ = "project_reviewers"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    reviewer_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True,
    )
    assigned_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "reviewer_id", name="uq_project_reviewer"),
    )

    project = db.relationship("Project", back_populates="reviewer_assignments")
    reviewer = db.relationship("User", foreign_keys=[reviewer_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
        }

    def __repr__(self) -> str:
        return f"<ProjectReviewer project={self.project_id} reviewer={self.reviewer_id}>"
