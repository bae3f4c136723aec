"""
Knowledge Extraction Node

Runs the knowledge extractor over the retrieved documents and merges the
result into the memory snapshot carried in ``system_context``.

Entity names are normalized (lowercase, trimmed) so "Billing Service" and
"billing service " land on the same entity across documents and runs.
Extraction failures never break the flow: the node logs and returns no
update.
"""
import logging
from typing import Any, Dict, List, Optional

from langsmith import traceable

from archie.domain.memory_store import MemoryStore
from ..config import DEFAULT_ENTITY_TYPE
from ..services import ArchieServices
from ..state import ArchieState

logger = logging.getLogger(__name__)


def normalize_entity_name(name: Any) -> str:
    return str(name).lower().strip()


def to_entity(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    name = normalize_entity_name(raw.get("name") or raw.get("id") or "")
    if not name:
        return None
    properties = raw.get("properties") if isinstance(raw.get("properties"), dict) else {}
    return {
        "name": name,
        "type": raw.get("type") or DEFAULT_ENTITY_TYPE,
        "description": raw.get("description") or properties.get("description", "") or "",
        "tags": [],
        "properties": properties,
    }


def to_relationship(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    source = normalize_entity_name(raw.get("from") or raw.get("source") or "")
    target = normalize_entity_name(raw.get("to") or raw.get("target") or "")
    rel_type = raw.get("type")
    if not source or not target or not rel_type:
        return None
    properties = raw.get("properties") if isinstance(raw.get("properties"), dict) else {}
    return {"from": source, "to": target, "type": str(rel_type), "properties": properties}


@traceable(name="knowledge_extraction", tags=["llm", "extraction", "memory"])
async def knowledge_extraction_node(state: ArchieState, services: ArchieServices) -> dict:
    """
    Extract entities/relationships from ``inputs`` into ``system_context``.

    Async node (extractor usually calls the LLM).

    Returns:
        State updates:
        - system_context: merged memory snapshot
        Empty update when there are no inputs or extraction fails.
    """
    inputs = state.get("inputs") or {}
    if not inputs:
        logger.info("No input documents; skipping knowledge extraction")
        return {}

    try:
        results = await services.extractor.extract(inputs, model=state.get("model_name") or None)

        entities: List[Dict[str, Any]] = []
        relationships: List[Dict[str, Any]] = []
        for result in results:
            entities.extend(e for e in map(to_entity, result.entities) if e)
            relationships.extend(r for r in map(to_relationship, result.relationships) if r)

        if not entities and not relationships:
            logger.info("Extractor found no knowledge in the input documents")
            return {}

        store = MemoryStore.from_snapshot(state.get("system_context"))
        counts = store.merge(entities, relationships)
    except Exception as e:
        logger.warning(f"⚠️  Knowledge extraction failed ({type(e).__name__}): {e}. Continuing without new knowledge.")
        return {}

    logger.info(
        f"🧠 Knowledge extraction: {counts.entities_added} entities added, "
        f"{counts.entities_updated} updated, {counts.relationships_added} relationships added, "
        f"{counts.relationships_rejected} rejected"
    )
    return {"system_context": store.to_dict()}
