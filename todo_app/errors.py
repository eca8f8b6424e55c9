"""
Error taxonomy and JSON error handlers.

Every failure the API reports maps to one exception class carrying its
HTTP status.  Route handlers raise them; the handlers registered by
``register_error_handlers`` turn them into ``{"message": "..."}`` bodies
so every endpoint shares one error envelope.

Key Concepts Demonstrated:
- Exception hierarchy keyed by HTTP status
- Application-wide error handlers instead of per-route try/except
- Werkzeug HTTP exceptions rendered as JSON rather than HTML
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    """Missing or malformed request fields."""

    status_code = 400
    default_message = "Bad request"


class Unauthenticated(ApiError):
    """No bearer token was presented."""

    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(ApiError):
    """Username/password pair did not match a stored user."""

    status_code = 401
    default_message = "Invalid username or password"


class Forbidden(ApiError):
    """A bearer token was presented but is invalid or expired."""

    status_code = 403
    default_message = "Invalid or expired token"


class NotFound(ApiError):
    """Resource does not exist or is not owned by the caller."""

    status_code = 404
    default_message = "Resource not found"


class StorageError(ApiError):
    """A backing file could not be read, parsed or written."""

    status_code = 500
    default_message = "Internal server error"


class DuplicateUsernameError(ValidationError):
    """Raised by the credential store when a username is already taken."""

    default_message = "Username already exists"


def json_error(message: str, status_code: int) -> tuple[Response, int]:
    """
    Build a standardised JSON error response.

    Args:
        message: Human-readable description of the error.
        status_code: HTTP status code to return.

    Returns:
        A ``(Response, int)`` tuple suitable for returning directly
        from a Flask view function.
    """
    return jsonify({"message": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Attach the JSON error handlers to *app*."""

    @app.errorhandler(StorageError)
    def handle_storage_error(error: StorageError) -> tuple[Response, int]:
        logger.error("Storage failure: %s", error, exc_info=error.__cause__ or error)
        return json_error(StorageError.default_message, 500)

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> tuple[Response, int]:
        return json_error(error.message, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        return json_error(error.description or error.name, error.code or 500)

    @app.errorhandler(500)
    def internal_error(error: Exception) -> tuple[Response, int]:
        logger.error("Internal server error: %s", error)
        return json_error("Internal server error", 500)
