"""Application error hierarchy.

Every error raised deliberately by a service carries the HTTP status it maps
to. Anything that is not an ``AppError`` is treated as a programming or
infrastructure fault and reported generically.
"""

from __future__ import annotations


class AppError(Exception):
    """Base exception for operational errors surfaced to API callers."""

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)

    @property
    def status(self) -> str:
        """Envelope status: ``fail`` for client errors, ``error`` otherwise."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class AuthorizationError(AppError):
    """Raised when a session or Google credential is missing or no longer valid."""

    status_code = 401
    code = "UNAUTHORIZED"


class NotFoundError(AppError):
    """Raised when a file is not owned by the caller or does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(AppError):
    """Raised when a request is rejected before any remote or store call."""

    status_code = 400
    code = "VALIDATION_ERROR"


class RemoteSourceError(AppError):
    """Raised when a Google Drive call fails."""

    status_code = 500
    code = "REMOTE_SOURCE_ERROR"


class DriveListingError(RemoteSourceError):
    """Raised when a page of the Drive file listing cannot be fetched."""

    code = "DRIVE_LISTING_FAILED"


class RemoteMutationError(RemoteSourceError):
    """Raised when deleting or renaming a file on Google Drive fails."""

    code = "REMOTE_MUTATION_FAILED"

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Failed to {operation} file on Google Drive")


class LlmError(AppError):
    """Raised when the chat model cannot produce a reply."""

    code = "LLM_ERROR"
