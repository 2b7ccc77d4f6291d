"""
User Service — account CRUD and reviewer lookup.

Users are never deleted; deactivate them with ``update_user(is_active=False)``.
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email

from parjis.core.exceptions import ConflictError, NotFoundError, ValidationError
from parjis.models import db
from parjis.models.user import USER_ROLES, User, UserRole

logger = logging.getLogger(__name__)


def _normalise_email(email) -> str:
    try:
        valid = validate_email(str(email or "").strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"})
    return valid.normalized.lower()


def _check_role(role) -> str:
    if role not in USER_ROLES:
        raise ValidationError(
            f"role must be one of {sorted(USER_ROLES)}", details={"role": "invalid"},
        )
    return role


def _ensure_email_free(email: str, exclude_id: int | None = None) -> None:
    q = User.query.filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first():
        raise ConflictError("User", "email", email)


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def create_user(data: dict) -> User:
    """Create a user. Email must be unique, role one of UserRole."""
    email = _normalise_email(data.get("email"))
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required", details={"name": "required"})
    role = _check_role(data.get("role"))
    is_active = data.get("is_active", True)
    if not isinstance(is_active, bool):
        raise ValidationError("is_active must be a boolean", details={"is_active": "invalid"})

    _ensure_email_free(email)

    user = User(email=email, name=name, role=role, is_active=is_active)
    db.session.add(user)
    db.session.commit()
    logger.info("User created", extra={"user_id": user.id, "event_type": "user_created"})
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def list_users(*, role: str | None = None, is_active: bool | None = True) -> list[User]:
    """List users, active ones only unless ``is_active`` says otherwise.

    Pass ``is_active=None`` to include both active and inactive accounts.
    """
    q = User.query
    if role is not None:
        q = q.filter(User.role == _check_role(role))
    if is_active is not None:
        q = q.filter(User.is_active.is_(is_active))
    return q.order_by(User.id).all()


def update_user(user_id: int, data: dict) -> User:
    """Update email, name, role and/or is_active. Unknown keys are ignored."""
    user = get_user(user_id)

    changes = {}
    if "email" in data:
        changes["email"] = _normalise_email(data["email"])
        _ensure_email_free(changes["email"], exclude_id=user.id)
    if "name" in data:
        changes["name"] = str(data["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("name cannot be empty", details={"name": "required"})
    if "role" in data:
        changes["role"] = _check_role(data["role"])
    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            raise ValidationError("is_active must be a boolean", details={"is_active": "invalid"})
        changes["is_active"] = data["is_active"]

    # Nothing is applied until every field has passed validation.
    for key, value in changes.items():
        setattr(user, key, value)

    db.session.commit()
    logger.info(
        "User updated",
        extra={"user_id": user.id, "event_type": "user_updated"},
    )
    return user


def list_available_reviewers() -> list[User]:
    """Active users holding the reviewer role — the pool for new projects."""
    return list_users(role=UserRole.REVIEWER.value, is_active=True)
