"""
AI Email Composer

Drafts outbound emails from free-text instructions with a Groq chat model
and renders the fixed greeting template.

Design Considerations:
- The model answers in JSON object mode; the payload is validated with pydantic
- HTML drafts are wrapped in a single <div>; markdown drafts start with a title
- Failures raise CompositionError carrying the underlying message
"""

import json
import logging
from html import escape
from typing import Any, Callable, Optional

from groq import Groq
from pydantic import BaseModel, Field

from inbox_desk.config import COMPOSER_CONFIG
from inbox_desk.integrations.groq.client import GroqChatClient

logger = logging.getLogger(__name__)


class CompositionError(Exception):
    """The model call failed or returned an unusable draft."""


class HtmlDraft(BaseModel):
    subject: str = Field(..., min_length=1)
    html_content: str = Field(..., min_length=1)


class MarkdownDraft(BaseModel):
    subject: str = Field(..., min_length=1)
    markdown_content: str = Field(..., min_length=1)


def _prompt_intro(instructions: str, from_name: str, gender: str, language: str) -> str:
    return (
        "You are an expert copywriter with a knack for creating enticing and concise emails. "
        f"Your task is to craft an email in {language} that maintains a casual yet correct tone. "
        f"The email should be written from the perspective of {from_name} ({gender}) "
        "and must incorporate the following details:\n\n"
        f"{instructions}\n\n"
        "Ensure that the final email is engaging, clear, and perfectly aligned with the provided instructions.\n"
    )


def html_email_prompt(instructions: str, from_name: str, gender: str, language: str) -> str:
    return (
        _prompt_intro(instructions, from_name, gender, language)
        + "The email should be in HTML format. Make sure it's pure HTML, no markdown. "
        "The email body should be in the following format: <div>Content Body</div>\n"
        'Respond with a JSON object: {"subject": "...", "html_content": "<div>...</div>"}'
    )


def markdown_email_prompt(instructions: str, from_name: str, gender: str, language: str) -> str:
    return (
        _prompt_intro(instructions, from_name, gender, language)
        + "The email should be in markdown format. Make sure it's pure markdown, no HTML. "
        "The email body should be in the following format: # Title\\nContent Body\n"
        'Respond with a JSON object: {"subject": "...", "markdown_content": "# ..."}'
    )


def greeting_email_html(first_name: str) -> str:
    """HTML body of the templated greeting email."""
    return (
        "<div>"
        f"<h1>Welcome, {escape(first_name)}!</h1>"
        "<p>Thanks for getting in touch. This is a quick note to confirm that we received your details.</p>"
        "</div>"
    )


class EmailComposer:
    """
    Drafts emails with a Groq chat model.

    The client is created on first use, so a missing key only fails the
    requests that need the model.
    """

    def __init__(self,
                 api_key: Optional[str],
                 model: str = COMPOSER_CONFIG["model"]["name"],
                 client_factory: Callable[..., Any] = Groq,
                 max_retries: int = 2):
        self.api_key = api_key
        self.model = model
        self.client_factory = client_factory
        self.max_retries = max_retries
        self._client: Optional[GroqChatClient] = None

    def _get_client(self) -> GroqChatClient:
        if self._client is None:
            self._client = GroqChatClient(self.api_key, client_factory=self.client_factory,
                                          max_retries=self.max_retries)
        return self._client

    async def _draft(self, prompt: str, draft_model):
        try:
            response = await self._get_client().process_with_retry(
                [{"role": "user", "content": prompt}],
                model=self.model,
                temperature=COMPOSER_CONFIG["model"]["temperature"],
                max_completion_tokens=COMPOSER_CONFIG["model"]["max_completion_tokens"],
                response_format={"type": "json_object"},
            )
            return draft_model.model_validate(json.loads(GroqChatClient.response_text(response)))
        except Exception as e:
            logger.error(f"Email composition failed: {e}")
            raise CompositionError(str(e)) from e

    async def compose_html(self,
                           instructions: str,
                           from_name: Optional[str] = None,
                           gender: Optional[str] = None,
                           language: Optional[str] = None) -> HtmlDraft:
        """Draft an HTML email body and subject."""
        prompt = html_email_prompt(
            instructions,
            from_name or COMPOSER_CONFIG["default_from_name"],
            gender or COMPOSER_CONFIG["default_gender"],
            language or COMPOSER_CONFIG["default_language"],
        )
        return await self._draft(prompt, HtmlDraft)

    async def compose_markdown(self,
                               instructions: str,
                               from_name: Optional[str] = None,
                               gender: Optional[str] = None,
                               language: Optional[str] = None) -> MarkdownDraft:
        """Draft a markdown email body and subject."""
        prompt = markdown_email_prompt(
            instructions,
            from_name or COMPOSER_CONFIG["default_from_name"],
            gender or COMPOSER_CONFIG["default_gender"],
            language or COMPOSER_CONFIG["default_language"],
        )
        return await self._draft(prompt, MarkdownDraft)
