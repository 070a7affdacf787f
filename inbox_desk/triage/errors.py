"""
Triage Error Taxonomy

Defines the typed failure kinds raised by the triage pipeline and its
collaborators. Callers branch on ``error.kind`` rather than on message
text; the HTTP layer maps each kind to a status code in one place.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories surfaced by the triage pipeline."""
    CONFIGURATION = "configuration"
    FETCH = "fetch"
    CLASSIFICATION = "classification"
    CACHE = "cache"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    PROVIDER_ERROR = "provider_error"


class TriageError(Exception):
    """
    Base class for all pipeline failures.

    Attributes:
        kind: Machine-readable failure category
        details: Human-readable detail, usually the underlying cause message
    """
    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message


class ConfigurationError(TriageError):
    """A required credential or setting is missing. Never retried."""
    kind = ErrorKind.CONFIGURATION


class FetchError(TriageError):
    """The mail provider could not list or read messages."""
    kind = ErrorKind.FETCH


class ClassificationError(TriageError):
    """The AI call failed or returned a payload that does not validate."""
    kind = ErrorKind.CLASSIFICATION


class CacheError(TriageError):
    """A key-value cache read or write failed. Logged, never propagated."""
    kind = ErrorKind.CACHE


class ProviderActionError(TriageError):
    """
    A mailbox mutation (trash, send) was rejected by the provider.

    The kind is chosen from the provider's reported status so that
    not-found and permission-denied stay distinguishable.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.PROVIDER_ERROR, details: Optional[str] = None):
        super().__init__(message, details)
        self.kind = kind

    @classmethod
    def from_status(cls, status: Optional[int], message: str, details: Optional[str] = None) -> "ProviderActionError":
        """Build an error whose kind reflects the provider's HTTP status."""
        if status == 404:
            kind = ErrorKind.NOT_FOUND
        elif status == 403:
            kind = ErrorKind.PERMISSION_DENIED
        else:
            kind = ErrorKind.PROVIDER_ERROR
        return cls(message, kind=kind, details=details)
