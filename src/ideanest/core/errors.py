"""Error taxonomy shared by services and the HTTP layer.

Services raise these; the exception handlers installed in
:mod:`ideanest.main` turn them into the response envelope with the
matching status code.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class IdeaNestError(RuntimeError):
    """Base class for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(IdeaNestError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class AuthenticationError(IdeaNestError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class PermissionDeniedError(IdeaNestError):
    """Authenticated, but the role or ownership check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(IdeaNestError):
    """Target entity does not exist (or is not visible to the caller)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(IdeaNestError):
    """Uniqueness violation or lost race on a concurrent write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class TransientError(IdeaNestError):
    """Store timeout, pool exhaustion or similar temporary failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Service temporarily unavailable"
