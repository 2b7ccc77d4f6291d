"""
Platform-wide exception hierarchy.

Services raise these; blueprints never build error payloads for business
rules themselves.  ``parjis.blueprints.register_error_handlers`` maps every
type here onto a single JSON envelope and HTTP status, so each rule
violation surfaces the same way no matter which endpoint hit it.

Usage:
    from parjis.core.exceptions import NotFoundError, InvalidStateError

    raise NotFoundError(resource="Project", resource_id=42)
    raise InvalidStateError("approve", current_status="draft", required=["under_review"])
"""


class NotFoundError(Exception):
    """Raised when a referenced project, review, user or comment does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Review").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails validation in the service layer.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would create a duplicate unique value.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


# ── Workflow rule violations ─────────────────────────────────────────────────


class WorkflowError(Exception):
    """Base class for project review / approval rule violations.

    ``rule`` is the machine-readable name of the violated rule and is echoed
    to API clients as the error code suffix.
    """

    rule = "workflow"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ForbiddenError(WorkflowError):
    """The actor lacks the role or identity required for the operation."""

    rule = "forbidden"

    def __init__(self, message: str, user_id: int | None = None) -> None:
        self.user_id = user_id
        super().__init__(message)


class InvalidStateError(WorkflowError):
    """The project is not in the status the requested transition requires."""

    rule = "invalid_state"

    def __init__(self, action: str, current_status: str, required: list[str] | None = None) -> None:
        self.action = action
        self.current_status = current_status
        self.required = list(required or [])
        msg = f"Cannot {action} project from status: {current_status}"
        if self.required:
            msg += f" (requires {' or '.join(self.required)})"
        super().__init__(msg)


class ReviewsIncompleteError(WorkflowError):
    """Approval attempted while reviews are missing or unsubmitted."""

    rule = "reviews_incomplete"

    def __init__(self, message: str, pending_review_ids: list[int] | None = None) -> None:
        self.pending_review_ids = list(pending_review_ids or [])
        super().__init__(message)


class ReviewsNotAllApprovedError(WorkflowError):
    """Approval attempted while a reject or return decision exists."""

    rule = "reviews_not_all_approved"

    def __init__(self, message: str, decisions: dict[str, int] | None = None) -> None:
        self.decisions = dict(decisions or {})
        super().__init__(message)


class ReviewAlreadySubmittedError(WorkflowError):
    """A reviewer tried to submit a review that already carries a decision."""

    rule = "review_already_submitted"

    def __init__(self, review_id: int) -> None:
        self.review_id = review_id
        super().__init__(f"Review id={review_id} has already been submitted")


class AggregationIntegrityError(Exception):
    """A complete review set could not be resolved to a project status.

    Only reachable when stored data breaks the Review invariant (a submitted
    review without a decision).  Surfaced as a server error, never resolved.
    """

    def __init__(self, review_ids: list[int]) -> None:
        self.review_ids = list(review_ids)
        super().__init__(
            f"Submitted reviews without a decision: {', '.join(str(i) for i in self.review_ids) or 'unknown'}"
        )
