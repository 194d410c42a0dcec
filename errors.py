"""Error kinds raised by the services and mapped to HTTP responses in main.py"""
from typing import Optional


class AppError(Exception):
    """Base error carrying an HTTP status and a user-facing message"""
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ValidationError(AppError):
    """Raised when a required field is missing or malformed"""
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class Conflict(AppError):
    """Duplicate interest, or acting on one's own project"""
    status_code = 400
    default_message = "Conflict"


class InternalError(AppError):
    pass
