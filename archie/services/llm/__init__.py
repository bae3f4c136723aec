"""LLM Infrastructure Package - Shared LLM client utilities."""
from .factory import get_llm_client
from .clients import BaseLLMClient, AnthropicClient, OpenAIClient

__all__ = [
    "get_llm_client",
    "BaseLLMClient",
    "AnthropicClient",
    "OpenAIClient",
]
