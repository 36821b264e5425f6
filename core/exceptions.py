"""
core/exceptions.py -- Error taxonomy for the dashboard API.

Every failure a handler can produce maps onto one of these classes. Each
carries the HTTP status it renders as; api/main.py owns the single exception
handler that turns an ApiError into the {success: false, message, error?}
envelope, so route code only ever raises.

Layer rule: core/ imports nothing from the rest of the project.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that are safe to report to the client."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, error: str | None = None) -> None:
        self.message = message or self.default_message
        # Optional machine-readable detail, rendered as the "error" field.
        self.error = error
        super().__init__(self.message)


class BadRequestError(ApiError):
    """Validation failure or a request that contradicts current state."""

    status_code = 400
    default_message = "Bad request."


class UnauthorizedError(ApiError):
    """Missing, invalid or expired credentials; inactive account."""

    status_code = 401
    default_message = "Unauthorized."


class ForbiddenError(ApiError):
    """Authenticated, but role or ownership rules deny the action."""

    status_code = 403
    default_message = "Access denied."


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found."


class ConflictError(ApiError):
    """A uniqueness constraint (username, email) would be violated."""

    status_code = 409
    default_message = "Resource already exists."


class InternalError(ApiError):
    status_code = 500
