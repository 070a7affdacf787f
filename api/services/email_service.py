"""
Outbound Email Service

Sends templated and AI-composed emails through the Gmail adapter and keeps
the per-user email log.

Design Considerations:
- Clean separation from route handling
- Sending and logging are separate steps; a failed send is never logged
- Stateless apart from the shared adapter and composer
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from api.config import get_settings
from api.services.triage_service import get_mail_source
from inbox_desk.composer import EmailComposer, MarkdownDraft, greeting_email_html
from inbox_desk.integrations.gmail import GmailMailSource
from inbox_desk.storage.email_repository import EmailRepository

logger = logging.getLogger(__name__)


class EmailService:
    """
    Sends and records outbound email.

    Attributes:
        mail_source: Gmail adapter used for delivery
        composer: AI composer for drafted emails
        default_from_name: Display name when the caller gives none
    """

    def __init__(self, mail_source: GmailMailSource, composer: EmailComposer, default_from_name: str):
        self.mail_source = mail_source
        self.composer = composer
        self.default_from_name = default_from_name

    async def _send_and_record(self,
                               user: Optional[Dict[str, Any]],
                               to: str,
                               subject: str,
                               html: str,
                               from_name: str) -> Dict[str, Any]:
        message_id = await self.mail_source.send_message(to, subject, html=html, from_name=from_name)
        data: Dict[str, Any] = {"id": message_id}
        if user:
            record = await EmailRepository.record_email(
                user_id=user["id"],
                from_address=from_name,
                to_address=to,
                subject=subject,
                body=html,
            )
            data["log_id"] = record["id"]
        return data

    async def send_greeting(self, user: Optional[Dict[str, Any]], to: str, first_name: str, subject: str) -> Dict[str, Any]:
        """Send the templated greeting email."""
        return await self._send_and_record(user, to, subject, greeting_email_html(first_name), self.default_from_name)

    async def compose_and_send(self,
                               user: Optional[Dict[str, Any]],
                               to: str,
                               instructions: str,
                               from_name: Optional[str] = None,
                               gender: Optional[str] = None,
                               language: Optional[str] = None) -> Dict[str, Any]:
        """Draft an HTML email with the AI composer and send it."""
        sender_name = from_name or self.default_from_name
        draft = await self.composer.compose_html(instructions, sender_name, gender, language)
        data = await self._send_and_record(user, to, draft.subject, draft.html_content, sender_name)
        return {
            "message": "Email sent successfully",
            "subject": draft.subject,
            "html": draft.html_content,
            "data": data,
        }

    async def compose_markdown(self,
                               instructions: str,
                               from_name: Optional[str] = None,
                               gender: Optional[str] = None,
                               language: Optional[str] = None) -> MarkdownDraft:
        """Draft a markdown email without sending it."""
        return await self.composer.compose_markdown(
            instructions, from_name or self.default_from_name, gender, language)

    async def list_emails(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Email log of ``user``."""
        return await EmailRepository.list_emails(user["id"])


@lru_cache()
def get_email_service() -> EmailService:
    """Provide email service instance for dependency injection."""
    settings = get_settings()
    composer = EmailComposer(
        api_key=settings.secret(settings.GROQ_API_KEY),
        max_retries=settings.GROQ_MAX_RETRIES,
    )
    return EmailService(get_mail_source(), composer, settings.DEFAULT_FROM_NAME)
