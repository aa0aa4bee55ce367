from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations.

    ``reason`` is a stable machine-readable code returned to API clients.
    """

    reason = "domain_error"

    def __init__(self, message: str, *, reason: str | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class ValidationError(DomainError):
    """Raised when input data is missing or invalid."""

    reason = "missing_fields"

    def __init__(self, message: str, *, reason: str | None = None, fields: Sequence[str] = ()):
        super().__init__(message, reason=reason)
        self.fields = tuple(fields)


class NotFoundError(DomainError):
    """Raised when a referenced student or location does not exist."""

    reason = "not_found"


class StudentNotFoundError(NotFoundError):
    reason = "student_not_found"


class ConflictError(DomainError):
    """Raised when a unique key (e.g. school + location code) is already taken."""

    reason = "conflict"


class StoreError(DomainError):
    """Raised when the underlying database fails."""

    reason = "store_error"


class AuthenticationError(DomainError):
    """Raised when the bearer token is missing, malformed or expired."""

    reason = "unauthorized"


class AuthorizationError(DomainError):
    """Raised when the caller's role lacks permission for an action."""

    reason = "forbidden"
