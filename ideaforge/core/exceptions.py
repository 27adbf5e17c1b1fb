"""
Application-wide exception hierarchy.

Services raise these; a single set of app-level error handlers
(``ideaforge.utils.errors.register_error_handlers``) turns them into the
``{"status": "fail"|"error", "message": ...}`` envelope with the HTTP
status mirrored from ``status_code``.

Usage:
    from ideaforge.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Idea", resource_id=idea_id)
    raise ValidationError("Idea must be at least 20 characters")
"""

from ideaforge.utils.errors import E


class AppError(Exception):
    """Base for every error that should reach the client as a structured response.

    ``status`` is derived from the HTTP code: ``"fail"`` for client errors,
    ``"error"`` for server-side conditions.
    """

    status_code = 500
    code = E.INTERNAL

    def __init__(self, message: str, *, status_code: int | None = None,
                 details: dict | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


class NotFoundError(AppError):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Idea", "Document").
        resource_id: The id that was looked up.
        message: Optional override for the default "<resource> not found".
    """

    status_code = 404
    code = E.NOT_FOUND

    def __init__(self, resource: str, resource_id: str | None = None,
                 message: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message or f"{resource} not found")


class ValidationError(AppError):
    """Malformed or out-of-bounds input, rejected before any LLM call."""

    status_code = 400
    code = E.VALIDATION_INVALID


class StateConflictError(AppError):
    """Illegal lifecycle transition or an operation that conflicts with current state.

    Covers confirming an unanalyzed idea, generating documents twice,
    self-dependencies and circular task dependencies.
    """

    status_code = 409
    code = E.CONFLICT_STATE


class UpstreamUnavailableError(AppError):
    """Every LLM attempt raised; the client may retry later."""

    status_code = 503
    code = E.UPSTREAM_UNAVAILABLE

    def __init__(self, message: str = "AI service temporarily unavailable. Please try again.") -> None:
        super().__init__(message)
