"""LLM Clients Package - Provider implementations."""
from .base import BaseLLMClient
from .anthropic import AnthropicClient
from .openai import OpenAIClient

__all__ = [
    "BaseLLMClient",
    "AnthropicClient",
    "OpenAIClient",
]
