"""
Worknest - Error Types
======================

Typed failures raised by repositories and services.

Every error carries a human-readable ``message`` and the HTTP-style
``status_code`` the API boundary maps it to. Callers branch on the class,
never on the message text.
"""

from typing import Optional


class WorknestError(Exception):
    """Base class for all domain, auth and storage failures."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ==========================================================================
# Input & Entity Errors
# ==========================================================================

class ValidationError(WorknestError):
    """Malformed or constraint-violating input."""

    status_code = 400
    default_message = "Invalid input"


class NotFoundError(WorknestError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Entity not found"


class ConflictError(WorknestError):
    """Uniqueness or other storage constraint violation."""

    status_code = 409
    default_message = "Conflicting entity already exists"


class UserExists(ConflictError):
    default_message = "User already exists"


# ==========================================================================
# Authentication Errors
# ==========================================================================

class AuthenticationError(WorknestError):
    """Base for failures that are recoverable by re-authenticating."""

    status_code = 401
    default_message = "Not authenticated"


class Unauthorized(AuthenticationError):
    default_message = "Not authenticated"


class InvalidCredentials(AuthenticationError):
    # Same message for unknown user and wrong password
    default_message = "Invalid credentials"


class TokenExpired(AuthenticationError):
    default_message = "Token expired"


class TokenInvalid(AuthenticationError):
    default_message = "Invalid token"


# ==========================================================================
# Storage Errors
# ==========================================================================

class StorageError(WorknestError):
    """
    Underlying connection or transaction failure.

    Transient: the caller may retry a bounded number of times. The message
    is deliberately generic so storage internals never reach clients.
    """

    status_code = 500
    default_message = "A storage error occurred, please try again"


class Overloaded(StorageError):
    """No pooled connection became available within the bounded wait."""

    status_code = 503
    default_message = "Service is busy, please try again"
