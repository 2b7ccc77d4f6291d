"""
Project history — append-only audit trail.

Models:
    - ProjectHistory: one row per significant state change on a project.
"""

from datetime import datetime, timezone

from parjis.models import db


class ProjectHistory(db.Model):
    """
    Immutable audit row.

    Rows are never updated or deleted.  ``action`` is a short human-readable
    label ("Project Submitted", "Project status changed to approved", ...);
    ``details`` carries the free-text context (justification, reason).
    """

    __tablename__ = "project_history"
    __table_args__ = (
        db.Index("idx_history_project_ts", "project_id", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True,
        comment="Actor who caused the change",
    )
    action = db.Column(db.String(200), nullable=False)
    details = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "action": self.action,
            "details": self.details,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ProjectHistory {self.id}: project={self.project_id} {self.action}>"


def write_history(*, project_id: int, user_id: int, action: str, details: str | None = None) -> ProjectHistory:
    """
    Append a single history row.  Uses ``flush`` so callers keep
    transaction control.
    """
    entry = ProjectHistory(
        project_id=project_id,
        user_id=user_id,
        action=action,
        details=details,
    )
    db.session.add(entry)
    db.session.flush()
    return entry
