"""Service-level error taxonomy shared by every component.

Each error carries the HTTP status the outer layer should use and a
user-facing message. Storage failures never leak driver detail beyond the
``StorageError`` classification; the original exception is chained instead.
"""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors surfaced to callers of the service layer."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ServiceError):
    """Malformed, duplicate, rate-limited or invalid-state input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(ServiceError):
    """The caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(ServiceError):
    """The caller is authenticated but lacks the role or ownership required."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(ServiceError):
    """The referenced entity is absent or soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StorageError(ServiceError):
    """Transaction or connectivity failure; the unit of work was rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage operation failed"


class ConflictError(StorageError):
    """A uniqueness or check constraint rejected the write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting write"


__all__ = [
    "BadRequestError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "ServiceError",
    "StorageError",
    "UnauthorizedError",
]
