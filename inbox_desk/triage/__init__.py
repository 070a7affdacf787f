"""
Email triage pipeline.

fetch unread mail -> match against sent mail -> batch-classify -> cache -> rank and render.
"""

from .errors import (
    CacheError,
    ClassificationError,
    ConfigurationError,
    ErrorKind,
    FetchError,
    ProviderActionError,
    TriageError,
)
from .models import (
    ClassificationVerdict,
    DisplayEntry,
    Importance,
    InboundEmail,
    SentEmailSummary,
    TriageBatch,
    TriageEntry,
    TriageOutput,
)

__all__ = [
    'CacheError',
    'ClassificationError',
    'ConfigurationError',
    'ErrorKind',
    'FetchError',
    'ProviderActionError',
    'TriageError',
    'ClassificationVerdict',
    'DisplayEntry',
    'Importance',
    'InboundEmail',
    'SentEmailSummary',
    'TriageBatch',
    'TriageEntry',
    'TriageOutput',
]
