import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from groq import Groq

from inbox_desk.triage.errors import ConfigurationError

logger = logging.getLogger(__name__)


class GroqChatClient:
    """Groq chat-completion client with retry logic and error handling."""

    def __init__(self,
                 api_key: Optional[str],
                 client_factory: Callable[..., Any] = Groq,
                 max_retries: int = 3):
        """Initialize the client; fails fast when no API key is configured."""
        if not api_key:
            raise ConfigurationError(
                "GROQ_API_KEY is not configured",
                details="Set GROQ_API_KEY to enable AI classification and composition",
            )
        self.api_key = api_key
        self.max_retries = max(1, max_retries)
        self.client = client_factory(api_key=api_key)

    async def process_with_retry(self,
                                 messages: List[Dict],
                                 **kwargs) -> Any:
        """Process a request with retry logic and error handling.

        Args:
            messages: List of message dictionaries for the conversation
            **kwargs: Additional parameters for the API call

        Returns:
            The SDK's chat completion response

        Raises:
            RuntimeError: When every attempt failed; the last error is chained
        """
        params = {
            'model': kwargs.pop('model', 'llama-3.3-70b-versatile'),
            'messages': messages,
            'temperature': kwargs.pop('temperature', 0.7),
            'max_completion_tokens': kwargs.pop('max_completion_tokens', 4096),
            **kwargs
        }
        retries = 0

        while True:
            try:
                # SDK call is blocking
                return await asyncio.to_thread(self.client.chat.completions.create, **params)

            except Exception as e:
                retries += 1
                if retries >= self.max_retries:
                    logger.error(f"Failed after {self.max_retries} attempts: {e}")
                    raise RuntimeError(f"Failed after {self.max_retries} attempts: {e}") from e

                # Exponential backoff
                wait_time = 2 ** retries
                logger.warning(f"Attempt {retries} failed. Waiting {wait_time} seconds before retry...")
                await asyncio.sleep(wait_time)

    @staticmethod
    def response_text(response: Any) -> str:
        """Extract the first choice's message content from a completion."""
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise ValueError("Completion response has no message content") from e
