"""
Domain exceptions shared by services and routes.

Each carries the HTTP status it maps to; `setup_error_handlers` renders
them as `{"error": message}`.
"""

from typing import Iterable


class AppError(Exception):
    """Base exception for errors that are reported to API callers."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AppError):
    """No session, or the session/token is invalid, expired or revoked."""

    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AppError):
    """Authenticated, but the role does not allow the operation."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    """Resource absent, or filtered out by the caller's access scope."""

    status_code = 404
    default_message = "Not found"


class ValidationError(AppError):
    """
    Malformed input. Carries every problem found in one request; the
    message is the semicolon-joined list.
    """

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, messages: str | Iterable[str] | None = None):
        if messages is None:
            self.messages = [self.default_message]
        elif isinstance(messages, str):
            self.messages = [messages]
        else:
            self.messages = list(messages) or [self.default_message]
        super().__init__("; ".join(self.messages))


class InvalidLogo(ValidationError):
    """Logo upload has the wrong type or is too large."""

    default_message = "Invalid logo"


class MissingInactivationReason(ValidationError):
    """Job moved to INACTIVE without a usable reason."""

    default_message = "Inactivation reason is required (at least 3 characters)"
