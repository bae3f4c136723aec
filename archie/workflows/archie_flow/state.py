"""
Archie Flow State Schema

Channels shared by every Archie flow. One thread runs one flow:

    START ─route(current_flow / user_input)─┬─ analyze ──────▶ document_retrieval
                                            ├─ build_context ▶ document_retrieval
                                            ├─ ask ──────────▶ echo ─▶ END
                                            └─ (no match) ───▶ END

    document_retrieval ─▶ knowledge_extraction ─┬─ analyze ───────▶ analysis ⟲ (suspend/resume) ─▶ END
                                                └─ build_context ─▶ context_building ─▶ END
"""
from typing import Any, Dict, List

from typing_extensions import NotRequired, TypedDict

from archie.models.memory import empty_snapshot
from archie.workflows.engine import Channel, append, replace, union_latest


class HistoryMessage(TypedDict):
    role: str  # "user" | "agent"
    content: str


class ArchieState(TypedDict):
    """
    State for one Archie thread.

    Input (set by the caller at START):
        current_flow, user_input, input_directory_path, system_name,
        model_name, system_context (memory snapshot loaded from disk)

    Output:
        analysis_output (analyze), context_output_* (build_context),
        response (ask), system_context (merged knowledge)
    """

    # INPUT
    user_input: str  # Initial query, then each resume answer
    current_flow: str  # "analyze" | "build_context" | "ask"
    input_directory_path: NotRequired[str]
    system_name: NotRequired[str]
    model_name: NotRequired[str]

    # DOCUMENT RETRIEVAL
    inputs: NotRequired[Dict[str, str]]  # file name → text

    # KNOWLEDGE (extraction + analysis + context building)
    system_context: NotRequired[Dict[str, Any]]  # {"entities": [...], "relationships": [...]}

    # ANALYSIS CONVERSATION
    analysis_history: NotRequired[List[HistoryMessage]]
    current_analysis_query: NotRequired[str]  # Question awaiting an answer
    turn_count: NotRequired[int]
    analysis_output: NotRequired[str]

    # CONTEXT BUILDING
    context_output_content: NotRequired[str]
    context_output_file_name: NotRequired[str]

    # ASK / ECHO
    response: NotRequired[str]


ARCHIE_CHANNELS: Dict[str, Channel] = {
    "user_input": Channel(replace, str),
    "response": Channel(replace, str),
    "analysis_history": Channel(append, list),
    "inputs": Channel(union_latest, dict),
    "analysis_output": Channel(replace, str),
    "current_analysis_query": Channel(replace, str),
    "current_flow": Channel(replace, str),
    "system_context": Channel(replace, empty_snapshot),
    "input_directory_path": Channel(replace, str),
    "system_name": Channel(replace, str),
    "model_name": Channel(replace, str),
    "context_output_content": Channel(replace, str),
    "context_output_file_name": Channel(replace, str),
    "turn_count": Channel(replace, int),
}

RESUME_CHANNEL = "user_input"
