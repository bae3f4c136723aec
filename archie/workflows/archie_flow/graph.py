"""
Archie Workflow Graph

Assembles the nodes into one StateGraph shared by every flow. The flow tag
in ``current_flow`` picks the route at START and again after knowledge
extraction.
"""
import logging
from typing import Optional

from archie.core.config import settings
from archie.workflows.engine import END, CompiledGraph, Runner, StateGraph
from archie.workflows.utils.checkpointer import BaseCheckpointer, create_checkpointer
from .config import (
    ANALYSIS_KEYWORDS,
    ECHO_PREFIX,
    FLOW_ANALYZE,
    FLOW_ASK,
    FLOW_BUILD_CONTEXT,
)
from .nodes import (
    analysis_node,
    context_building_node,
    document_retrieval_node,
    echo_node,
    knowledge_extraction_node,
)
from .services import ArchieServices
from .state import ARCHIE_CHANNELS, RESUME_CHANNEL, ArchieState

logger = logging.getLogger(__name__)


# ============================================================================
# Routing
# ============================================================================

def route_entry(state: ArchieState) -> str:
    """
    Pick the flow at START.

    An explicit ``current_flow`` tag wins. Otherwise the free-text input is
    matched: analysis keywords start an analysis, an "echo" prefix asks.
    """
    flow = state.get("current_flow") or ""
    if flow in (FLOW_ANALYZE, FLOW_BUILD_CONTEXT, FLOW_ASK):
        return flow

    text = (state.get("user_input") or "").lower()
    if any(keyword in text for keyword in ANALYSIS_KEYWORDS):
        return FLOW_ANALYZE
    if text.startswith(ECHO_PREFIX):
        return FLOW_ASK
    return "end"


def route_after_extraction(state: ArchieState) -> str:
    if state.get("current_flow") == FLOW_BUILD_CONTEXT:
        return FLOW_BUILD_CONTEXT
    return FLOW_ANALYZE


def route_after_analysis(state: ArchieState) -> str:
    return "done" if state.get("analysis_output") else "continue"


# ============================================================================
# Graph
# ============================================================================

def build_archie_graph() -> CompiledGraph:
    """
    Construct the Archie workflow graph.

    Flow:
        START ─route_entry─┬─ analyze / build_context ─▶ document_retrieval
                           ├─ ask ─▶ echo ─▶ END
                           └─ end ─▶ END

        document_retrieval ─▶ knowledge_extraction ─route_after_extraction─┬─▶ analysis
                                                                           └─▶ context_building ─▶ END

        analysis ─route_after_analysis─┬─ continue ─▶ analysis (after resume)
                                       └─ done ─▶ END

    Returns:
        Compiled graph resuming into the ``user_input`` channel
    """
    workflow = StateGraph(ARCHIE_CHANNELS)

    workflow.add_node("document_retrieval", document_retrieval_node)
    workflow.add_node("knowledge_extraction", knowledge_extraction_node)
    workflow.add_node("analysis", analysis_node)
    workflow.add_node("context_building", context_building_node)
    workflow.add_node("echo", echo_node)

    workflow.set_entry_router(route_entry, {
        FLOW_ANALYZE: "document_retrieval",
        FLOW_BUILD_CONTEXT: "document_retrieval",
        FLOW_ASK: "echo",
        "end": END,
    })
    workflow.add_edge("document_retrieval", "knowledge_extraction")
    workflow.add_conditional_edges("knowledge_extraction", route_after_extraction, {
        FLOW_ANALYZE: "analysis",
        FLOW_BUILD_CONTEXT: "context_building",
    })
    workflow.add_conditional_edges("analysis", route_after_analysis, {
        "continue": "analysis",
        "done": END,
    })
    workflow.add_edge("context_building", END)
    workflow.add_edge("echo", END)

    return workflow.compile(resume_channel=RESUME_CHANNEL)


def create_runner(
    services: Optional[ArchieServices],
    checkpointer: Optional[BaseCheckpointer] = None,
    max_steps: Optional[int] = None,
) -> Runner:
    """Runner for the Archie graph with the configured checkpointer and step budget."""
    return Runner(
        build_archie_graph(),
        checkpointer=checkpointer or create_checkpointer(),
        context=services,
        max_steps=max_steps or settings.GRAPH_MAX_STEPS,
    )
