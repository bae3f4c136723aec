"""
Context Building Node

Summarizes the input documents into a markdown context document for a named
system and merges the knowledge found along the way into ``system_context``.
"""
import logging

from langsmith import traceable

from archie.domain.exceptions import WorkflowInputError
from archie.domain.memory_store import MemoryStore
from ..config import CONTEXT_BUILDING_AGENT, CONTEXT_OUTPUT_SUFFIX
from ..services import ArchieServices
from ..state import ArchieState
from ..utils import log_warnings, parse_llm_response, summarize_files

logger = logging.getLogger(__name__)


@traceable(name="context_building", tags=["llm", "context"])
async def context_building_node(state: ArchieState, services: ArchieServices) -> dict:
    """
    Build ``<system_name>_context.md`` content from the input documents.

    Returns:
        State updates:
        - context_output_content: markdown document
        - context_output_file_name: "<system_name>_context.md"
        - system_context: memory snapshot including any new knowledge
        - user_input: cleared

    Raises:
        WorkflowInputError: No input documents or no system name
    """
    inputs = state.get("inputs") or {}
    system_name = state.get("system_name") or ""
    if not inputs:
        raise WorkflowInputError("Input documents were not found or are empty; context building cannot proceed")
    if not system_name:
        raise WorkflowInputError("System name is not set; context building cannot proceed")

    store = MemoryStore.from_snapshot(state.get("system_context"))
    prompt = services.prompts.format(CONTEXT_BUILDING_AGENT, "context_build", {
        "systemName": system_name,
        "fileSummaries": summarize_files(inputs),
        "systemContext": store.context_as_string(),
    })

    logger.info(f"🏗️  Building context for {system_name} from {len(inputs)} documents")
    response_text = await services.llm_client.complete([], prompt, model=state.get("model_name") or None)

    parsed = parse_llm_response(response_text)
    log_warnings(parsed, "context_building")
    if parsed.system_context:
        counts = store.merge(parsed.system_context["entities"], parsed.system_context["relationships"])
        logger.info(
            f"Context building added {counts.entities_added} entities and "
            f"{counts.relationships_added} relationships"
        )

    return {
        "context_output_content": parsed.agent_response or response_text.strip(),
        "context_output_file_name": f"{system_name}{CONTEXT_OUTPUT_SUFFIX}",
        "user_input": "",
        "system_context": store.to_dict(),
    }
