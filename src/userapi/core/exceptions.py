"""
Custom exceptions for the UserAPI service.

Each exception carries the HTTP status code it maps to, so handlers and
middleware can turn it into a JSON error response.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


class UserAPIException(Exception):
    """Base exception for the UserAPI service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(UserAPIException):
    """Raised when a user payload fails validation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="validation_error",
            details=details,
        )


class NotFoundError(UserAPIException):
    """Raised when a user index is out of range."""

    def __init__(self, message: str = "User not found.", index: Optional[int] = None) -> None:
        super().__init__(
            message=message,
            status_code=404,
            error_code="not_found",
            details={"index": index} if index is not None else None,
        )


class AuthenticationError(UserAPIException):
    """Raised when the API key is missing or wrong."""

    def __init__(self, message: str = "Invalid or missing API key.") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="authentication_error",
        )


def error_response(exc: UserAPIException) -> JSONResponse:
    """Render an exception as the service's JSON error body."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )
