"""
Email Triage Pipeline

Coordinates one triage request: load the unread batch and its verdicts
(from cache or fresh), match against sent mail, reconcile verdicts with
emails, rank and render.

Design Considerations:
- Verdicts are only trusted from cache when the emails also came from cache
- Sent mail is always fetched fresh
- Verdicts without a matching email are reported as orphans, never dropped silently
- Cache problems degrade to a miss; provider and classifier problems propagate
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Protocol, Tuple

from inbox_desk.config import TRIAGE_CONFIG

from .cache import TriageCache
from .classifier import BatchClassifier
from .models import (
    ClassificationVerdict,
    DisplayEntry,
    InboundEmail,
    SentEmailSummary,
    TriageBatch,
    TriageEntry,
    TriageOutput,
)
from .ranking import rank_needs_response, render_report, truncate
from .response_match import is_already_responded

logger = logging.getLogger(__name__)

_SOURCE_CONFIG = TRIAGE_CONFIG["mail_source"]
_REPORT_CONFIG = TRIAGE_CONFIG["report"]

NO_EMAILS_REPORT = "No emails fetched to analyze."


class MailSource(Protocol):
    """Operations the pipeline needs from a mail provider adapter."""

    async def fetch_unread(self, window_hours: int = 24) -> List[InboundEmail]:
        ...

    async def fetch_sent(self, window_days: int = 7) -> List[SentEmailSummary]:
        ...

    async def trash_message(self, message_id: str) -> None:
        ...


def reconcile(
    emails: List[InboundEmail],
    verdicts: List[ClassificationVerdict],
    sent: List[SentEmailSummary],
) -> Tuple[List[DisplayEntry], List[TriageEntry]]:
    """
    Pair verdicts with emails by id.

    Returns:
        (display rows for every verdict, orphans included;
         needs-response entries for matched verdicts only)
    """
    by_id: Dict[str, InboundEmail] = {email.id: email for email in emails}
    display: List[DisplayEntry] = []
    needs_response: List[TriageEntry] = []

    for verdict in verdicts:
        email = by_id.get(verdict.email_id)
        if email is None:
            logger.warning(
                f"AI returned analysis for an unknown/unmatched email id: {verdict.email_id}. "
                f"AI reason: {verdict.reason}"
            )
            display.append(DisplayEntry.from_verdict(verdict))
            continue

        display.append(DisplayEntry.from_verdict(verdict, email))
        if verdict.needs_response:
            fields = email.model_dump()
            fields["body"] = truncate(email.body, _REPORT_CONFIG["triage_body_chars"])
            needs_response.append(TriageEntry(
                **fields,
                analysis=verdict,
                already_responded=is_already_responded(email, sent),
            ))

    return display, needs_response


class TriagePipeline:
    """
    Runs the fetch, classify, cache, rank sequence for one request.

    Attributes:
        mail_source: Provider adapter (fetch unread, fetch sent, trash)
        classifier: Batch classifier
        cache: Triage cache slots
        unread_window_hours: Look-back window for unread mail
        sent_window_days: Look-back window for sent mail
    """

    def __init__(self,
                 mail_source: MailSource,
                 classifier: BatchClassifier,
                 cache: TriageCache,
                 unread_window_hours: int = _SOURCE_CONFIG["unread_window_hours"],
                 sent_window_days: int = _SOURCE_CONFIG["sent_window_days"]):
        self.mail_source = mail_source
        self.classifier = classifier
        self.cache = cache
        self.unread_window_hours = unread_window_hours
        self.sent_window_days = sent_window_days

    async def load(self, force_refresh: bool = False) -> TriageBatch:
        """
        Produce the email set and verdicts for this request.

        Raises:
            FetchError: Unread listing failed
            ConfigurationError: Classifier has no credential
            ClassificationError: Classification failed
        """
        batch = TriageBatch()

        emails = None
        if force_refresh:
            logger.info("Force refresh triggered for emails")
        else:
            emails = await self.cache.get_emails()

        if emails is not None:
            batch.emails = emails
            batch.emails_from_cache = True
        else:
            logger.info("Fetching fresh unread emails from the mail provider")
            batch.emails = await self.mail_source.fetch_unread(self.unread_window_hours)
            # The email slot is only written once no older verdicts remain
            if await self.cache.clear_verdicts():
                await self.cache.put_emails(batch.emails)

        # Verdicts are only reusable for the exact email set they were made for
        analysis_must_be_fresh = force_refresh or not batch.emails_from_cache
        verdicts = None
        if not analysis_must_be_fresh:
            verdicts = await self.cache.get_verdicts()

        if verdicts is not None:
            batch.verdicts = verdicts
            batch.verdicts_from_cache = True
        elif batch.emails:
            logger.info(f"Classifying {len(batch.emails)} emails")
            batch.verdicts = await self.classifier.classify(batch.emails)
            await self.cache.put_verdicts(batch.verdicts)

        return batch

    async def triage(self, force_refresh: bool = False) -> TriageOutput:
        """Run the full pipeline and build the triage output."""
        batch = await self.load(force_refresh)
        now = datetime.now(timezone.utc)

        if not batch.emails:
            logger.info("No emails fetched to analyze")
            return TriageOutput(last_updated=now, report=NO_EMAILS_REPORT, num_emails=0)

        sent = await self.mail_source.fetch_sent(self.sent_window_days)
        display, needs_response = reconcile(batch.emails, batch.verdicts, sent)
        ranked = rank_needs_response(needs_response)

        responded = sum(1 for entry in ranked if entry.already_responded)
        logger.info(f"Processed {len(batch.emails)} emails in total (batch analysis)")
        logger.info(f"Emails requiring response: {len(ranked)} ({responded} previously responded to)")

        return TriageOutput(
            last_updated=now,
            needs_response_emails=ranked,
            report=render_report(ranked, now),
            analyzed_emails=display,
            num_emails=len(batch.emails),
        )

    async def display_entries(self, force_refresh: bool = False) -> Tuple[List[DisplayEntry], int]:
        """Reconciled display rows and the fetched email count, for the HTML view."""
        batch = await self.load(force_refresh)
        if not batch.emails:
            return [], 0
        display, _ = reconcile(batch.emails, batch.verdicts, [])
        return display, len(batch.emails)

    async def delete_email(self, email_id: str) -> None:
        """
        Trash a message, then drop it from both cache slots.

        Each slot is rewritten only when it actually contained the id. Cache
        failures are logged and do not affect the result.

        Raises:
            ProviderActionError: The provider rejected the trash call
        """
        logger.info(f"Attempting to trash email with ID: {email_id}")
        await self.mail_source.trash_message(email_id)
        logger.info(f"Email with ID: {email_id} successfully moved to trash")

        emails = await self.cache.get_emails()
        if emails:
            remaining = [email for email in emails if email.id != email_id]
            if len(remaining) < len(emails):
                if await self.cache.put_emails(remaining):
                    logger.info(f"Removed email {email_id} from the email cache")

        verdicts = await self.cache.get_verdicts()
        if verdicts:
            remaining_verdicts = [verdict for verdict in verdicts if verdict.email_id != email_id]
            if len(remaining_verdicts) < len(verdicts):
                if await self.cache.put_verdicts(remaining_verdicts):
                    logger.info(f"Removed analysis for email {email_id} from the analysis cache")
