# FILE: architect/errors.py
"""
Error taxonomy for the ArchitectAI core.

Every failure raised by the storage layer, the pipeline, or the session maps to
exactly one ErrorType. Storage code raises the exceptions below; the pipeline
and session boundaries convert them into typed results.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorType(str, Enum):
    """Failure kinds surfaced to callers."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    CONFLICT_ERROR = "CONFLICT_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ArchitectError(Exception):
    """Base exception for core operations."""
    error_type: ErrorType = ErrorType.INTERNAL_ERROR


class ValidationError(ArchitectError):
    """Input rejected before any external call was made."""
    error_type = ErrorType.VALIDATION_ERROR


class ExternalServiceError(ArchitectError):
    """An AI capability failed or returned an unusable payload."""
    error_type = ErrorType.EXTERNAL_SERVICE_ERROR


class StageTimeoutError(ArchitectError):
    """A bounded wait expired."""
    error_type = ErrorType.TIMEOUT


class OperationCancelled(ArchitectError):
    """The operation's cancellation token fired."""
    error_type = ErrorType.CANCELLED


class ParseError(ArchitectError):
    """A persisted record could not be decoded."""
    error_type = ErrorType.PARSE_ERROR


class RemoteStoreError(ArchitectError):
    """Remote store request failed."""
    error_type = ErrorType.STORE_ERROR

    def __init__(self, message: str, path: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class RemoteStoreNotFound(RemoteStoreError):
    """Path does not exist at the remote store."""
    error_type = ErrorType.NOT_FOUND


class RemoteStoreConflict(RemoteStoreError):
    """Fingerprint mismatch on write (concurrent modification)."""
    error_type = ErrorType.CONFLICT_ERROR


class RemoteStoreTimeout(RemoteStoreError):
    """Remote store call exceeded its bounded wait."""
    error_type = ErrorType.TIMEOUT


def error_type_of(exc: BaseException) -> ErrorType:
    """Map any exception onto the taxonomy."""
    if isinstance(exc, ArchitectError):
        return exc.error_type
    return ErrorType.INTERNAL_ERROR


__all__ = [
    "ErrorType",
    "ArchitectError",
    "ValidationError",
    "ExternalServiceError",
    "StageTimeoutError",
    "OperationCancelled",
    "ParseError",
    "RemoteStoreError",
    "RemoteStoreNotFound",
    "RemoteStoreConflict",
    "RemoteStoreTimeout",
    "error_type_of",
]
