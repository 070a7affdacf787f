"""
Unit tests for the API service layer.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from api.config import APISettings, CacheBackend
from api.services.email_service import EmailService
from api.services.triage_service import TriageService, build_pipeline
from inbox_desk.composer import HtmlDraft
from inbox_desk.storage.email_repository import EmailRepository
from inbox_desk.triage.cache import DatabaseCacheStore, InMemoryCacheStore


class TestBuildPipeline:
    """Tests for wiring the pipeline from settings."""

    def test_memory_backend(self):
        settings = APISettings(CACHE_BACKEND=CacheBackend.MEMORY, CACHE_TTL_SECONDS=60, UNREAD_WINDOW_HOURS=12)

        pipeline = build_pipeline(settings, MagicMock())

        assert isinstance(pipeline.cache.store, InMemoryCacheStore)
        assert pipeline.cache.ttl_seconds == 60
        assert pipeline.unread_window_hours == 12

    def test_database_backend(self):
        settings = APISettings(CACHE_BACKEND=CacheBackend.DATABASE)

        pipeline = build_pipeline(settings, MagicMock())

        assert isinstance(pipeline.cache.store, DatabaseCacheStore)


@pytest.mark.asyncio
class TestTriageService:
    """Tests for the route-facing triage facade."""

    async def test_delete_message(self):
        pipeline = MagicMock()
        pipeline.delete_email = AsyncMock()

        message = await TriageService(pipeline).delete_email("abc")

        pipeline.delete_email.assert_awaited_once_with("abc")
        assert message == "Email with ID: abc successfully moved to trash. Cache updated."


@pytest.mark.asyncio
class TestEmailService:
    """Tests for sending and logging outbound email."""

    @pytest.fixture
    def mail_source(self):
        source = MagicMock()
        source.send_message = AsyncMock(return_value="gmail-1")
        return source

    @pytest.fixture
    def composer(self):
        composer = MagicMock()
        composer.compose_html = AsyncMock(return_value=HtmlDraft(subject="Lunch?", html_content="<div>Hi</div>"))
        return composer

    async def test_anonymous_send_is_not_logged(self, mail_source, composer, test_db):
        service = EmailService(mail_source, composer, "Francois")

        result = await service.send_greeting(None, "to@example.com", "Ana", "Welcome")

        assert result == {"id": "gmail-1"}
        kwargs = mail_source.send_message.await_args.kwargs
        assert kwargs["from_name"] == "Francois"
        assert "Ana" in kwargs["html"]

    async def test_user_send_is_logged(self, mail_source, composer, test_db):
        service = EmailService(mail_source, composer, "Francois")

        result = await service.send_greeting({"id": 7}, "to@example.com", "Ana", "Welcome")

        logged = await EmailRepository.list_emails(7)
        assert result["log_id"] == logged[0]["id"]
        assert logged[0]["subject"] == "Welcome"

    async def test_failed_send_is_not_logged(self, mail_source, composer, test_db):
        mail_source.send_message.side_effect = RuntimeError("smtp down")
        service = EmailService(mail_source, composer, "Francois")

        with pytest.raises(RuntimeError):
            await service.send_greeting({"id": 7}, "to@example.com", "Ana", "Welcome")

        assert await EmailRepository.list_emails(7) == []

    async def test_compose_and_send(self, mail_source, composer, test_db):
        service = EmailService(mail_source, composer, "Francois")

        result = await service.compose_and_send(None, "to@example.com", "Invite to lunch", from_name="Claire")

        assert result == {
            "message": "Email sent successfully",
            "subject": "Lunch?",
            "html": "<div>Hi</div>",
            "data": {"id": "gmail-1"},
        }
        assert composer.compose_html.await_args.args[1] == "Claire"
        assert mail_source.send_message.await_args.args == ("to@example.com", "Lunch?")
