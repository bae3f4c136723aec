"""
OpenAI (GPT) LLM Client Implementation.

Features:
- Automatic retry with exponential backoff (3 attempts)
- Retries: rate limits, connection errors, timeouts, server errors (5xx)
- Exponential backoff: 1-10 seconds between retries
- Async API calls
- Optional base URL for OpenAI-compatible endpoints
"""
from typing import Sequence

import openai
from tenacity import (
    retry,
    wait_exponential,
    stop_after_attempt,
    retry_if_exception_type
)
from .base import BaseLLMClient, Message, to_chat_messages
from archie.core.config import settings
from archie.domain.exceptions import ConfigurationError

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.InternalServerError,
)


class OpenAIClient(BaseLLMClient):
    """
    OpenAI chat completions client.

    Handles API communication with retry logic.
    Prompts provided by workflow-specific modules.
    """

    def __init__(self, model: str | None = None):
        """Initialize OpenAI async client."""
        if not settings.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY not set in environment")

        self.client = openai.AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL or None,
        )
        self.model = model or settings.DEFAULT_MODEL or DEFAULT_OPENAI_MODEL

    @retry(
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3)
    )
    async def complete(
        self,
        history: Sequence[Message],
        prompt: str,
        model: str | None = None,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=model or self.model,
            max_tokens=settings.LLM_MAX_TOKENS,
            temperature=settings.LLM_TEMPERATURE,
            messages=to_chat_messages(history, prompt),
        )
        return self.ensure_content(response.choices[0].message.content)
