"""
Anthropic (Claude) LLM Client Implementation.

Features:
- Automatic retry with exponential backoff (3 attempts)
- Retries: rate limits, connection errors, timeouts, server errors (5xx)
- System-role history entries are lifted into the ``system`` parameter
"""
from typing import Dict, List, Sequence, Tuple

import anthropic
from tenacity import (
    retry,
    wait_exponential,
    stop_after_attempt,
    retry_if_exception_type
)
from .base import BaseLLMClient, Message, to_chat_messages
from archie.core.config import settings
from archie.domain.exceptions import ConfigurationError

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"

RETRYABLE_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.InternalServerError,  # 5xx errors including 529 overload
)


def split_system(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, str]]]:
    """Anthropic takes system text separately from the turn list."""
    system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
    turns = [m for m in messages if m["role"] != "system"]
    return system, turns


def response_text(response) -> str | None:
    parts = [block.text for block in response.content if getattr(block, "type", "text") == "text"]
    return "".join(parts) if parts else None


class AnthropicClient(BaseLLMClient):
    """
    Anthropic Claude API client.

    Handles API communication with retry logic.
    Prompts provided by workflow-specific modules.
    """

    def __init__(self, model: str | None = None):
        """Initialize Claude async client."""
        if not settings.ANTHROPIC_API_KEY:
            raise ConfigurationError("ANTHROPIC_API_KEY not set in environment")

        self.client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY
        )
        self.model = model or settings.DEFAULT_MODEL or DEFAULT_ANTHROPIC_MODEL

    def _request(self, history: Sequence[Message], prompt: str, model: str | None) -> dict:
        system, turns = split_system(to_chat_messages(history, prompt))
        request = {
            "model": model or self.model,
            "max_tokens": settings.LLM_MAX_TOKENS,
            "temperature": settings.LLM_TEMPERATURE,
            "messages": turns,
        }
        if system:
            request["system"] = system
        return request

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
        response = await self.client.messages.create(**self._request(history, prompt, model))
        return self.ensure_content(response_text(response))
