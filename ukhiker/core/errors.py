# ukhiker/core/errors.py
"""Application error taxonomy.

Services raise these; ``ukhiker.server`` turns them into the
``{"success": false, "message", "error"}`` JSON envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.default_message
        # only exposed to clients in development
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidCredentials(AppError):
    status_code = 400
    default_message = "Invalid credentials"


class Unauthorized(AppError):
    status_code = 401
    default_message = "No token, authorization denied"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied: Admin privileges required"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 400
    default_message = "User already exists"


class SignatureInvalid(AppError):
    status_code = 400
    default_message = "Webhook signature verification failed"


class InternalError(AppError):
    status_code = 500
    default_message = "Server error"


class InvalidToken(Exception):
    """Raised by the token service; the auth dependency maps it to Unauthorized."""


__all__ = [
    "AppError",
    "ValidationError",
    "InvalidCredentials",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "SignatureInvalid",
    "InternalError",
    "InvalidToken",
]
