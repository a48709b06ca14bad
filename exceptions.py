"""
Application error taxonomy.
Each error carries the HTTP status it is rendered with by the handlers in main.py.
"""
from typing import Optional

from starlette import status


class AppError(Exception):
    """Base class for errors surfaced to API callers as {success: false, message}."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Internal detail, only exposed outside production
        self.detail = detail


class ValidationError(AppError):
    """Missing or malformed required input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """Referenced animal, command, fence or alert does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Request conflicts with stored state (duplicate tag, identity change on correction)."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(AppError):
    """Privileged action attempted without authorization."""

    status_code = status.HTTP_403_FORBIDDEN


class StorageError(AppError):
    """A datastore operation failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
