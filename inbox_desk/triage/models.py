"""
Triage data models.

Value types shared by the mail source adapter, the batch classifier and
the cache/ranker. Provider payloads are translated into these types at the
adapter boundary; everything downstream works only with them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ORPHAN_LABEL = "Unknown (AI Mismatch)"
ORPHAN_REASON_SUFFIX = " (Original email not found for this ID in fetched batch)"


class Importance(str, Enum):
    """Classifier importance levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def severity(self) -> int:
        """Sort rank: high sorts before medium before low."""
        return _SEVERITY[self]


_SEVERITY = {Importance.HIGH: 0, Importance.MEDIUM: 1, Importance.LOW: 2}


class EmailHeader(BaseModel):
    """A single raw message header, in provider order."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class InboundEmail(BaseModel):
    """
    An unread inbox message as fetched from the mail provider.

    Immutable once fetched. Serialised with ``by_alias=True`` so the sender
    appears under ``from`` in cache entries and API output.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    message_id: str = ""
    thread_id: str
    subject: str = "No Subject"
    sender: str = Field(default="Unknown Sender", alias="from")
    to: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    received_at: datetime
    body: str = ""
    snippet: str = ""
    headers: List[EmailHeader] = Field(default_factory=list)


class SentEmailSummary(BaseModel):
    """Header-only view of a sent message, used for response matching."""
    model_config = ConfigDict(frozen=True)

    id: str
    subject: str = ""
    recipients: List[str] = Field(default_factory=list)
    sent_at: datetime


class ClassificationVerdict(BaseModel):
    """Per-message verdict returned by the batch classifier."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email_id: str = Field(validation_alias=AliasChoices("email_id", "emailId"))
    importance: Importance
    reason: str
    needs_response: bool
    time_sensitive: bool
    # 2-5 entries are requested but the count is not enforced
    topics: List[str] = Field(default_factory=list)


class TriageEntry(InboundEmail):
    """An email that needs a response, with its verdict and reply status."""
    analysis: ClassificationVerdict
    already_responded: bool = False


class DisplayEntry(BaseModel):
    """Flat row for the analyzed-emails listing, orphans included."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    sender: str = Field(alias="from")
    subject: str
    importance: Importance
    reason: str
    needs_response: bool
    time_sensitive: bool
    topics: List[str] = Field(default_factory=list)
    orphan: bool = False

    @classmethod
    def from_verdict(cls, verdict: ClassificationVerdict, email: Optional[InboundEmail] = None) -> "DisplayEntry":
        """Build a row from a verdict, flagging it as an orphan when no email matched."""
        if email is None:
            return cls(
                id=verdict.email_id,
                sender=ORPHAN_LABEL,
                subject=ORPHAN_LABEL,
                importance=verdict.importance,
                reason=f"{verdict.reason}{ORPHAN_REASON_SUFFIX}",
                needs_response=verdict.needs_response,
                time_sensitive=verdict.time_sensitive,
                topics=list(verdict.topics),
                orphan=True,
            )
        return cls(
            id=email.id,
            sender=email.sender,
            subject=email.subject,
            importance=verdict.importance,
            reason=verdict.reason,
            needs_response=verdict.needs_response,
            time_sensitive=verdict.time_sensitive,
            topics=list(verdict.topics),
        )


class TriageOutput(BaseModel):
    """Machine-readable triage result plus the rendered text report."""
    model_config = ConfigDict(populate_by_name=True)

    last_updated: datetime
    needs_response_emails: List[TriageEntry] = Field(default_factory=list)
    report: str
    analyzed_emails: List[DisplayEntry] = Field(default_factory=list)
    num_emails: int = 0


@dataclass
class TriageBatch:
    """Emails and verdicts in play for one request, with their provenance."""
    emails: List[InboundEmail] = field(default_factory=list)
    verdicts: List[ClassificationVerdict] = field(default_factory=list)
    emails_from_cache: bool = False
    verdicts_from_cache: bool = False
