"""
Run context for Archie nodes.

Nodes that take a second argument receive an ``ArchieServices`` instance
from the Runner. Tests swap any field for a fake.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from archie.core.config import Settings, settings as default_settings
from archie.services.documents import DocumentSource
from archie.services.extraction import KnowledgeExtractor, LLMKnowledgeExtractor
from archie.services.llm import BaseLLMClient, get_llm_client
from archie.services.prompts import PromptService
from .config import EXTRACTION_AGENT
from .prompts import DEFAULT_PROMPTS

logger = logging.getLogger(__name__)


@dataclass
class ArchieServices:
    llm_client: BaseLLMClient
    extractor: KnowledgeExtractor
    prompts: PromptService
    documents: DocumentSource = field(default_factory=DocumentSource)
    settings: Settings = field(default_factory=lambda: default_settings)


def extraction_prompt_builder(prompts: PromptService):
    def build(document_name: str, document_text: str) -> str:
        return prompts.format(EXTRACTION_AGENT, "extract", {
            "documentName": document_name,
            "documentText": document_text,
        })
    return build


def create_services(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    llm_client: Optional[BaseLLMClient] = None,
    app_settings: Optional[Settings] = None,
) -> ArchieServices:
    """
    Wire the default collaborators.

    Raises:
        ConfigurationError: Missing API key, unknown provider, unreadable prompt config
    """
    app_settings = app_settings or default_settings
    client = llm_client or get_llm_client(provider=provider, model=model or None)
    prompts = PromptService(DEFAULT_PROMPTS, app_settings.PROMPTS_CONFIG_PATH)
    logger.debug(f"Services ready (model={client.model})")
    return ArchieServices(
        llm_client=client,
        extractor=LLMKnowledgeExtractor(client, extraction_prompt_builder(prompts)),
        prompts=prompts,
        settings=app_settings,
    )
