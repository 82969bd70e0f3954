"""Failure classification and exception types."""

from enum import Enum


class FailureKind(Enum):
    """Kinds of underlying filesystem failure the procedures branch on."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


def classify_failure(error: BaseException) -> FailureKind:
    """Map an exception raised by a filesystem call to a FailureKind."""
    if isinstance(error, FileNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(error, PermissionError):
        return FailureKind.PERMISSION_DENIED
    return FailureKind.OTHER


def is_not_found(error: BaseException) -> bool:
    return classify_failure(error) is FailureKind.NOT_FOUND


class SafeFsError(Exception):
    """Base class for errors raised by safefs itself.

    Underlying OSErrors are never wrapped; they reach the caller unchanged.
    """


class DecodeError(SafeFsError, ValueError):
    """Raised when file content cannot be decoded as requested."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
