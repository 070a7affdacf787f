"""
Triage Service

Wires the triage pipeline from application settings and exposes it to the
routes through FastAPI dependencies.

Design Considerations:
- Collaborators are built once per process and shared between requests
- Missing credentials do not prevent startup; they fail the requests that need them
- The cache store is chosen by CACHE_BACKEND
"""

import logging
from functools import lru_cache
from typing import List, Tuple

from api.config import APISettings, CacheBackend, get_settings
from inbox_desk.integrations.gmail import GmailAuthenticationManager, GmailMailSource
from inbox_desk.triage.cache import DatabaseCacheStore, InMemoryCacheStore, TriageCache
from inbox_desk.triage.classifier import BatchClassifier
from inbox_desk.triage.models import DisplayEntry, TriageOutput
from inbox_desk.triage.pipeline import TriagePipeline

logger = logging.getLogger(__name__)


def build_mail_source(settings: APISettings) -> GmailMailSource:
    """Create the Gmail adapter; the API service is built on first use."""
    auth_manager = GmailAuthenticationManager(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.secret(settings.GOOGLE_CLIENT_SECRET),
        refresh_token=settings.secret(settings.GOOGLE_REFRESH_TOKEN),
    )
    return GmailMailSource(
        auth_manager.create_gmail_service,
        unread_page_size=settings.UNREAD_PAGE_SIZE,
        sent_page_size=settings.SENT_PAGE_SIZE,
    )


def build_pipeline(settings: APISettings, mail_source: GmailMailSource) -> TriagePipeline:
    """Assemble the triage pipeline from settings."""
    if settings.CACHE_BACKEND == CacheBackend.MEMORY:
        store = InMemoryCacheStore()
    else:
        store = DatabaseCacheStore()

    classifier = BatchClassifier(
        api_key=settings.secret(settings.GROQ_API_KEY),
        model=settings.GROQ_MODEL,
        max_retries=settings.GROQ_MAX_RETRIES,
    )
    return TriagePipeline(
        mail_source=mail_source,
        classifier=classifier,
        cache=TriageCache(store, ttl_seconds=settings.CACHE_TTL_SECONDS),
        unread_window_hours=settings.UNREAD_WINDOW_HOURS,
        sent_window_days=settings.SENT_WINDOW_DAYS,
    )


class TriageService:
    """Route-facing facade over the triage pipeline."""

    def __init__(self, pipeline: TriagePipeline):
        self.pipeline = pipeline

    async def analyze(self, force_refresh: bool = False) -> TriageOutput:
        """Run triage, reusing cached emails and verdicts unless forced."""
        logger.info(f"Running email triage (force_refresh={force_refresh})")
        return await self.pipeline.triage(force_refresh)

    async def display_rows(self, force_refresh: bool = False) -> Tuple[List[DisplayEntry], int]:
        """Display rows for the HTML view, plus the fetched email count."""
        return await self.pipeline.display_entries(force_refresh)

    async def delete_email(self, email_id: str) -> str:
        """Trash an email and drop it from the cache; returns the confirmation message."""
        await self.pipeline.delete_email(email_id)
        return f"Email with ID: {email_id} successfully moved to trash. Cache updated."


@lru_cache()
def get_mail_source() -> GmailMailSource:
    """Provide the shared Gmail adapter for dependency injection."""
    return build_mail_source(get_settings())


@lru_cache()
def get_triage_service() -> TriageService:
    """Provide the triage service instance for dependency injection."""
    return TriageService(build_pipeline(get_settings(), get_mail_source()))
