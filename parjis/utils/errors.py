"""JSON error envelope shared by every endpoint.

    {"error": "<human message>", "code": "ERR_...", "details": {...}?}

    from parjis.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Project id=4 not found")
    return api_error(E.REVIEWS_INCOMPLETE, "Reviews pending", details={"pending_review_ids": [3]})
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes (``ERR_`` prefix)."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_CONSTRAINT = "ERR_VALIDATION_CONSTRAINT"

    NOT_FOUND = "ERR_NOT_FOUND"
    FORBIDDEN = "ERR_FORBIDDEN"

    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    REVIEWS_INCOMPLETE = "ERR_REVIEWS_INCOMPLETE"
    REVIEWS_NOT_ALL_APPROVED = "ERR_REVIEWS_NOT_ALL_APPROVED"
    REVIEW_ALREADY_SUBMITTED = "ERR_REVIEW_ALREADY_SUBMITTED"

    INTERNAL = "ERR_INTERNAL"


# Malformed input is 400; well-formed input that breaks a business rule is 422.
_CODES_BY_STATUS = {
    400: (E.VALIDATION_REQUIRED, E.VALIDATION_INVALID),
    403: (E.FORBIDDEN,),
    404: (E.NOT_FOUND,),
    409: (
        E.CONFLICT_DUPLICATE,
        E.CONFLICT_STATE,
        E.REVIEWS_INCOMPLETE,
        E.REVIEWS_NOT_ALL_APPROVED,
        E.REVIEW_ALREADY_SUBMITTED,
    ),
    422: (E.VALIDATION_CONSTRAINT,),
    500: (E.INTERNAL,),
}

DEFAULT_STATUS: dict[str, int] = {
    code: status for status, codes in _CODES_BY_STATUS.items() for code in codes
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for ``code``.

    ``status`` overrides the code's default; unknown codes fall back to 400.
    ``details`` is included only when non-empty.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or DEFAULT_STATUS.get(code, 400)
