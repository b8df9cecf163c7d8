"""Domain exceptions for the update-request engine.

Each exception carries the HTTP status code it maps to, so routers can let
them propagate and the application-level handler renders them uniformly.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code (default 500).
        detail: Optional additional context.
    """

    def __init__(self, message: str, status_code: int = 500, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response body."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(AppError):
    """A payload is missing a required reference or names the wrong kind of org."""

    def __init__(self, message: str, field: Optional[str] = None):
        detail = f"Field: {field}" if field else None
        super().__init__(message, status_code=400, detail=detail)
        self.field = field


class AuthenticationError(AppError):
    """No principal could be resolved for the request."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class AuthorizationError(AppError):
    """The principal lacks authority for an action that is not queueable (e.g. reject)."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    """A referenced entity or update request does not exist."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found: {identifier}", status_code=404)
        self.resource = resource
        self.identifier = identifier


class ConflictError(AppError):
    """A concurrent change invalidated an assumption of the submission.

    Retryable: the caller may re-read current state and submit again.
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=409, detail=detail)


class InvalidTransitionError(AppError):
    """Status change requested from a terminal state."""

    def __init__(self, request_id: str, current_status: str, target_status: str):
        super().__init__(
            f"Update request {request_id} is already {current_status}",
            status_code=409,
            detail=f"Cannot transition {current_status} -> {target_status}",
        )
        self.request_id = request_id
        self.current_status = current_status
        self.target_status = target_status


class InfrastructureError(AppError):
    """Database timeout or connection failure; retried at the edge, never here."""

    def __init__(self, message: str = "Storage unavailable", detail: Optional[str] = None):
        super().__init__(message, status_code=503, detail=detail)
