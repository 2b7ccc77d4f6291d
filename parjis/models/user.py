"""
User domain model.

Roles are a closed set. Every place that branches on a role matches the
``UserRole`` enum exhaustively instead of comparing raw strings.
"""

from datetime import datetime, timezone
from enum import Enum

from parjis.models import db


class UserRole(str, Enum):
    PROJECT_PROPOSER = "project_proposer"
    REVIEWER = "reviewer"
    DIRECTOR = "director"
    SYSTEM_ADMINISTRATOR = "system_administrator"


USER_ROLES = frozenset(r.value for r in UserRole)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(
        db.String(30), nullable=False,
        comment="project_proposer | reviewer | director | system_administrator",
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
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
        db.Index("ix_users_role_active", "role", "is_active"),
    )

    @property
    def user_role(self) -> UserRole:
        return UserRole(self.role)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"
