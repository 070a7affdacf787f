"""
Batch Email Classifier

Sends every unread email in one chat-completion request and parses the
structured verdicts that come back.

Design Considerations:
- One AI call per batch; verdicts are matched to emails by id, never by position
- JSON-object response format validated against the verdict model
- Missing API key fails fast, before any outbound call
- Any failure surfaces as ClassificationError with the cause chain kept
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from groq import Groq
from pydantic import BaseModel, Field

from inbox_desk.config import TRIAGE_CONFIG
from inbox_desk.integrations.groq.client import GroqChatClient

from .errors import ClassificationError, ConfigurationError
from .models import ClassificationVerdict, InboundEmail

logger = logging.getLogger(__name__)

_CLASSIFIER_CONFIG = TRIAGE_CONFIG["classifier"]

SYSTEM_PROMPT = """You are an expert email analysis assistant.
You will be provided with a batch of emails. For each email, analyze its content and determine:
1. email_id: The original ID of the email (must match the 'ID' field of that email in the input).
2. importance: (high, medium, or low) - Assess based on sender, content, and potential impact.
3. reason: A concise explanation for the importance rating and identified topics.
4. needs_response: (true or false) - Does it require a reply?
5. time_sensitive: (true or false) - Are there deadlines or urgent matters?
6. topics: An array of 2-5 main topics/keywords.

Respond with a JSON object of the form {"analyses": [...]}, where each element of "analyses"
corresponds to one email. Every email in the input batch must have exactly one analysis object,
matched by its original email_id."""


class _VerdictEnvelope(BaseModel):
    analyses: List[ClassificationVerdict] = Field(default_factory=list)


def shape_email_input(email: InboundEmail, snippet_chars: int = _CLASSIFIER_CONFIG["body_snippet_chars"]) -> Dict[str, str]:
    """Reduce an email to the fields sent to the model, capping the body."""
    body = email.body or ""
    snippet = body[:snippet_chars]
    if len(body) > snippet_chars:
        snippet += "..."
    return {
        "id": email.id,
        "from": email.sender,
        "subject": email.subject,
        "body_snippet": snippet,
    }


def build_user_prompt(inputs: List[Dict[str, str]]) -> str:
    """Render the shaped batch as the user message."""
    prompt = ("Analyze the following batch of emails. Ensure each email analysis in your response "
              "includes the correct 'email_id' matching the input email ID:\n\n")
    for index, item in enumerate(inputs, start=1):
        prompt += f"--- Email {index} ---\n"
        prompt += f"ID: {item['id']}\n"
        prompt += f"From: {item['from']}\n"
        prompt += f"Subject: {item['subject']}\n"
        prompt += f"Body Snippet: {item['body_snippet']}\n\n"
    return prompt


def parse_verdicts(content: str) -> List[ClassificationVerdict]:
    """
    Parse and validate the model's JSON payload.

    Accepts either the requested ``{"analyses": [...]}`` envelope or a bare
    array. Raises ValueError or pydantic's ValidationError on bad input.
    """
    payload = json.loads(content)
    if isinstance(payload, list):
        payload = {"analyses": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return _VerdictEnvelope.model_validate(payload).analyses


def _failure_message(error: BaseException) -> str:
    message = f"AI generation failed: {error}"
    if error.__cause__ is not None:
        message += f". Caused by: {error.__cause__}"
    return message


class BatchClassifier:
    """
    Classifies a batch of emails with a single Groq chat-completion call.

    Attributes:
        api_key: Groq API key; may be empty, in which case non-empty batches fail
        model: Chat model name
        client_factory: Callable building the SDK client from ``api_key``
        max_retries: Transport attempts made by the underlying client
    """

    def __init__(self,
                 api_key: Optional[str],
                 model: str = _CLASSIFIER_CONFIG["model"]["name"],
                 client_factory: Callable[..., Any] = Groq,
                 max_retries: int = _CLASSIFIER_CONFIG["model"]["retry_count"]):
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

    async def classify(self, emails: List[InboundEmail]) -> List[ClassificationVerdict]:
        """
        Classify ``emails`` in one request.

        Returns:
            One verdict per email the model answered for, in model order

        Raises:
            ConfigurationError: No API key configured (non-empty batch only)
            ClassificationError: Transport, provider, JSON or schema failure
        """
        if not emails:
            return []

        if not self.api_key:
            logger.error("GROQ_API_KEY is not set; AI analysis cannot proceed")
            raise ConfigurationError(
                "Configuration error: GROQ_API_KEY is not set. AI analysis cannot proceed."
            )

        inputs = [shape_email_input(email) for email in emails]
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(inputs)},
        ]

        logger.info(f"Sending {len(inputs)} emails to AI for batch analysis")
        try:
            response = await self._get_client().process_with_retry(
                messages,
                model=self.model,
                temperature=_CLASSIFIER_CONFIG["model"]["temperature"],
                max_completion_tokens=_CLASSIFIER_CONFIG["model"]["max_completion_tokens"],
                response_format={"type": "json_object"},
            )
            content = GroqChatClient.response_text(response)
            logger.debug(f"Classifier response length: {len(content)} characters")
            verdicts = parse_verdicts(content)
        except ConfigurationError:
            raise
        except Exception as e:
            message = _failure_message(e)
            logger.error(f"Error during batch AI email analysis: {message}")
            raise ClassificationError(message) from e

        logger.info(f"Batch AI analysis successful. Results count: {len(verdicts)}")
        return verdicts
