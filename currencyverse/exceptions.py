"""
Domain errors and their HTTP mapping

Every error raised by storage, services or routes derives from
CurrencyVerseError. The API layer renders them in the response envelope
using ``status_code`` and ``error``.
"""

from typing import Optional


class CurrencyVerseError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = 500
    error = "Internal error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error:
            self.error = error


class ValidationError(CurrencyVerseError):
    status_code = 400
    error = "Validation error"


class InvalidAmount(ValidationError):
    error = "Invalid amount"


class InvalidStatus(ValidationError):
    error = "Invalid status"


class InsufficientFunds(CurrencyVerseError):
    status_code = 400
    error = "Insufficient funds"


class AuthError(CurrencyVerseError):
    status_code = 401
    error = "Authentication failed"


class ForbiddenError(CurrencyVerseError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(CurrencyVerseError):
    status_code = 404
    error = "Not found"


class RateNotFound(NotFoundError):
    error = "Exchange rate not found"


class ConflictError(CurrencyVerseError):
    status_code = 409
    error = "Conflict"


class InternalError(CurrencyVerseError):
    status_code = 500
    error = "Something went wrong!"


class DatabaseUnavailable(CurrencyVerseError):
    """Raised at startup when the database is unreachable and fallback is off"""

    status_code = 503
    error = "Database unavailable"
