"""
PARJIS — Project Approval & Review
Blueprint registry and shared request helpers.

Services raise the exceptions in ``parjis.core.exceptions``;
``register_error_handlers`` turns each of them into the standard
``api_error`` envelope so blueprints stay free of error mapping.
"""

import logging

from flask import request
from sqlalchemy.exc import IntegrityError

from parjis.core.exceptions import (
    AggregationIntegrityError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ReviewAlreadySubmittedError,
    ReviewsIncompleteError,
    ReviewsNotAllApprovedError,
    ValidationError,
)
from parjis.models import db
from parjis.utils.errors import E, api_error

logger = logging.getLogger(__name__)


class MalformedRequest(Exception):
    """Malformed request (missing or mistyped field). Maps to HTTP 400."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


def json_body() -> dict:
    """Return the JSON object body, or raise MalformedRequest."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedRequest("Request body must be a JSON object")
    return data


def require_int(data: dict, field: str) -> int:
    """Return ``data[field]`` as an int, or raise MalformedRequest."""
    value = data.get(field)
    if value is None:
        raise MalformedRequest(f"{field} is required", field=field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRequest(f"{field} must be an integer", field=field)
    return value


def paginate_args(default_limit=50, max_limit=200):
    """Read limit/offset query params.

    Query params:
        limit  — max items (default 50, capped at max_limit)
        offset — starting position (default 0)
    """
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return max(limit, 0), offset


def bool_arg(name: str):
    """Parse a true/false query param; None when absent."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise MalformedRequest(f"{name} must be true or false", field=name)


def _discard_session():
    # Writes are committed by services; anything left staged belongs to the failed call.
    db.session.rollback()


def register_error_handlers(app):
    """Map domain exceptions onto JSON error responses app-wide."""

    @app.errorhandler(MalformedRequest)
    def _bad_request(error: MalformedRequest):
        code = E.VALIDATION_REQUIRED if "required" in str(error) else E.VALIDATION_INVALID
        details = {error.field: str(error)} if error.field else None
        return api_error(code, str(error), details=details)

    @app.errorhandler(ValidationError)
    def _validation(error: ValidationError):
        _discard_session()
        return api_error(E.VALIDATION_CONSTRAINT, str(error), details=error.details)

    @app.errorhandler(NotFoundError)
    def _not_found(error: NotFoundError):
        _discard_session()
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(ConflictError)
    def _conflict(error: ConflictError):
        _discard_session()
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={"field": error.field})

    @app.errorhandler(ForbiddenError)
    def _forbidden(error: ForbiddenError):
        logger.warning(
            "Forbidden: %s", error.message,
            extra={"user_id": error.user_id, "error_code": E.FORBIDDEN},
        )
        return api_error(E.FORBIDDEN, error.message)

    @app.errorhandler(InvalidStateError)
    def _invalid_state(error: InvalidStateError):
        return api_error(
            E.CONFLICT_STATE, error.message,
            details={"current_status": error.current_status, "required": error.required},
        )

    @app.errorhandler(ReviewsIncompleteError)
    def _reviews_incomplete(error: ReviewsIncompleteError):
        return api_error(
            E.REVIEWS_INCOMPLETE, error.message,
            details={"pending_review_ids": error.pending_review_ids},
        )

    @app.errorhandler(ReviewsNotAllApprovedError)
    def _reviews_not_all_approved(error: ReviewsNotAllApprovedError):
        return api_error(
            E.REVIEWS_NOT_ALL_APPROVED, error.message, details={"decisions": error.decisions},
        )

    @app.errorhandler(ReviewAlreadySubmittedError)
    def _review_already_submitted(error: ReviewAlreadySubmittedError):
        return api_error(
            E.REVIEW_ALREADY_SUBMITTED, error.message, details={"review_id": error.review_id},
        )

    @app.errorhandler(AggregationIntegrityError)
    def _aggregation_integrity(error: AggregationIntegrityError):
        _discard_session()
        logger.error(
            "Review data integrity violation: %s", error,
            extra={"error_code": E.INTERNAL},
        )
        return api_error(E.INTERNAL, "Review data is inconsistent; contact an administrator")

    @app.errorhandler(IntegrityError)
    def _integrity(error: IntegrityError):
        _discard_session()
        logger.warning("Integrity error on commit: %s", error.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Duplicate or constraint violation")
