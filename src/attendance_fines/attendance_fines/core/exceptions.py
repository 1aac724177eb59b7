from __future__ import annotations

from .enums import CheckInErrorCode


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class MalformedTimeframeError(ValidationError):
    """Raised when an event timeframe matches neither accepted form."""

    code = "MALFORMED_TIMEFRAME"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class CheckInError(DomainError):
    """Raised when a scanned attendance token is rejected."""

    def __init__(self, code: CheckInErrorCode, message: str | None = None):
        super().__init__(message or code.value)
        self.code = code
