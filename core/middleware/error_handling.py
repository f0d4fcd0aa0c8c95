"""
Error handling middleware with security-compliant error sanitization.

Every error leaves the API as `{"error": "<message>"}`; messages of
unexpected errors are never passed through to callers.
"""

import logging
import re
from typing import Callable, Tuple

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import AppError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'(postgres(?:ql)?(?:\+\w+)?://)[^@\s]+@', re.IGNORECASE),
    re.compile(r'\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}'),  # bcrypt hash
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


def error_body(message: str) -> dict:
    return {"error": message}


def resolve_error(exc: Exception, method: str, path: str) -> Tuple[int, str]:
    """
    Map an exception to (status code, caller-facing message) and log it
    with a severity matching its class.
    """
    # Local import: api.schemas depends on core
    from api.schemas.common import format_validation_errors

    if isinstance(exc, AppError):
        level = logging.WARNING if exc.status_code >= 400 and exc.status_code != 404 else logging.INFO
        logger.log(level, f"{type(exc).__name__}: {method} {path} - {exc.message}")
        return exc.status_code, exc.message

    if isinstance(exc, RequestValidationError):
        message = "; ".join(format_validation_errors(exc.errors())) or "Invalid input"
        logger.warning(f"Validation error: {method} {path} - {sanitize_error_message(message)}")
        return status.HTTP_400_BAD_REQUEST, message

    if isinstance(exc, StarletteHTTPException):
        message = sanitize_error_message(str(exc.detail))
        logger.warning(f"HTTP exception: {method} {path} - Status: {exc.status_code}, Message: {message}")
        return exc.status_code, message

    if isinstance(exc, IntegrityError):
        logger.error(f"Database integrity error: {method} {path} - {sanitize_error_message(str(exc.orig))}")
        return status.HTTP_409_CONFLICT, "Database integrity constraint violated"

    if isinstance(exc, OperationalError):
        logger.error(f"Database operational error: {method} {path}", exc_info=True)
        return status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE

    if isinstance(exc, SQLAlchemyError):
        logger.error(f"SQLAlchemy error: {method} {path}", exc_info=True)
        return status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE

    logger.error(
        f"Unhandled exception: {method} {path} - "
        f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
        exc_info=True,
    )
    return status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE


class ErrorHandlingMiddleware:
    """
    Last-resort ASGI error handler.

    Exception handlers registered by `setup_error_handlers` deal with
    domain and validation errors; anything escaping them ends up here and
    becomes a sanitized 500.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include the exception type in responses
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        status_code, message = resolve_error(
            exc, scope.get("method", "unknown"), scope.get("path", "unknown")
        )
        content = error_body(message)
        if self.debug and status_code >= 500:
            content["type"] = type(exc).__name__
        return JSONResponse(status_code=status_code, content=content)


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        status_code, message = resolve_error(exc, request.method, request.url.path)
        headers = None
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(status_code=status_code, content=error_body(message), headers=headers)

    app.add_exception_handler(AppError, _handle)
    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(StarletteHTTPException, _handle)
    app.add_exception_handler(SQLAlchemyError, _handle)
    app.add_exception_handler(Exception, _handle)
