"""
LLM Client Factory - Provider selection and instantiation.

Single point of configuration for switching between LLM providers.
"""
from .clients.base import BaseLLMClient
from .clients.anthropic import AnthropicClient
from .clients.openai import OpenAIClient
from archie.core.config import settings
from archie.domain.exceptions import ConfigurationError


def get_llm_client(
    provider: str | None = None,
    model: str | None = None,
) -> BaseLLMClient:
    """
    Factory function to get LLM client.

    Args:
        provider: Override provider (defaults to LLM_PROVIDER setting)
        model: Override model (defaults to DEFAULT_MODEL or the provider default)

    Returns:
        LLM client instance (OpenAI or Anthropic)

    Raises:
        ConfigurationError: If provider not recognized or API key missing
    """
    p = provider or settings.LLM_PROVIDER
    if p == "anthropic":
        return AnthropicClient(model=model)
    elif p == "openai":
        return OpenAIClient(model=model)
    else:
        raise ConfigurationError(f"Unknown LLM provider: {p}. Use 'openai' or 'anthropic'.")
