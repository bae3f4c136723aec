"""
Knowledge extraction from documents.

The extractor turns raw document text into candidate entities and
relationships. It is a substitutable collaborator: the knowledge-extraction
node only depends on ``KnowledgeExtractor.extract`` and treats any failure
as "no new knowledge".
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from langsmith import traceable

from archie.services.llm import BaseLLMClient

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Entities and relationships found in one document (raw dicts, not yet validated)."""
    source: str
    entities: List[Dict[str, Any]] = field(default_factory=list)
    relationships: List[Dict[str, Any]] = field(default_factory=list)


class KnowledgeExtractor(ABC):

    @abstractmethod
    async def extract(
        self,
        documents: Mapping[str, str],
        model: Optional[str] = None,
    ) -> List[ExtractionResult]:
        """
        Extract knowledge from ``{name: text}`` documents.

        Returns one result per document that produced anything. Raises on
        collaborator failure; callers decide how to degrade.
        """


class LLMKnowledgeExtractor(KnowledgeExtractor):
    """
    Asks the language model for a JSON graph per document.

    Expected response shape:
        {"entities": [{"name", "type", "description"?, "properties"?}],
         "relationships": [{"from", "to", "type", "properties"?}]}
    """

    def __init__(self, llm_client: BaseLLMClient, build_prompt: Callable[[str, str], str]):
        self.llm_client = llm_client
        self.build_prompt = build_prompt

    @traceable(name="extract_knowledge", tags=["llm", "extraction"])
    async def extract(
        self,
        documents: Mapping[str, str],
        model: Optional[str] = None,
    ) -> List[ExtractionResult]:
        results = []
        for name, text in documents.items():
            prompt = self.build_prompt(name, text)
            response_text = await self.llm_client.complete([], prompt, model=model)
            parsed = self.llm_client.parse_json_response(response_text)
            if not isinstance(parsed, dict):
                logger.warning(f"Extraction for {name} returned {type(parsed).__name__}, expected object")
                continue

            entities = parsed.get("entities") or []
            relationships = parsed.get("relationships") or []
            if not isinstance(entities, list) or not isinstance(relationships, list):
                logger.warning(f"Extraction for {name} has non-list entities/relationships; skipping")
                continue

            logger.debug(f"{name}: {len(entities)} entities, {len(relationships)} relationships")
            results.append(ExtractionResult(
                source=name,
                entities=entities,
                relationships=relationships,
            ))
        return results
