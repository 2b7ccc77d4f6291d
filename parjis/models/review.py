"""
Review domain model.

One Review row is created empty per assigned reviewer when the project is
created.  ``decision`` and ``submitted_at`` are written together, exactly
once, when the reviewer submits; ``submitted_at IS NULL`` means pending.
"""

from datetime import datetime, timezone
from enum import Enum

from parjis.models import db


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    RETURN = "return"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


REVIEW_DECISIONS = frozenset(d.value for d in ReviewDecision)
RISK_LEVELS = frozenset(r.value for r in RiskLevel)


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    reviewer_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True,
    )

    decision = db.Column(db.String(10), nullable=True, comment="approve | reject | return")
    justification = db.Column(db.Text, nullable=True)
    risk_identification = db.Column(db.Text, nullable=True)
    risk_assessment = db.Column(db.String(10), nullable=True, comment="low | medium | high")
    risk_mitigation = db.Column(db.Text, nullable=True)
    comments = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

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
        db.UniqueConstraint("project_id", "reviewer_id", name="uq_review_project_reviewer"),
    )

    project = db.relationship("Project", back_populates="reviews")
    reviewer = db.relationship("User", foreign_keys=[reviewer_id])

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "decision": self.decision,
            "justification": self.justification,
            "risk_identification": self.risk_identification,
            "risk_assessment": self.risk_assessment,
            "risk_mitigation": self.risk_mitigation,
            "comments": self.comments,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        state = self.decision or "pending"
        return f"<Review {self.id}: project={self.project_id} reviewer={self.reviewer_id} {state}>"
