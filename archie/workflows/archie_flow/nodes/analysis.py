"""
Analysis Node

Conversational architecture analysis. One node implements the whole
conversation state machine; the Runner's suspension is the wait state:

    PREPARE ──(termination phrase / turn bound)──▶ DONE (analysis_output set) ─▶ END
       │
       └── model asks a question ─▶ Suspend(question) ══ AWAITING_INPUT ══
                                        resume(answer) → user_input ─▶ PREPARE

Every model reply may carry a <system> knowledge update, merged into the
``system_context`` snapshot before the thread suspends.
"""
import json
import logging
from typing import Dict, List

from langsmith import traceable

from archie.domain.memory_store import MemoryStore
from archie.workflows.engine import Continue, Suspend
from ..config import ANALYSIS_AGENT, FINAL_AGENT_MESSAGE
from ..prompts import build_system_prompt
from ..services import ArchieServices
from ..state import ArchieState
from ..utils import (
    file_list,
    last_user_message,
    log_warnings,
    parse_llm_response,
    summarize_files,
    user_is_done,
)

logger = logging.getLogger(__name__)

NO_OUTPUT = "No analysis output generated."


def _model_history(conversation: List[Dict[str, str]], store: MemoryStore) -> List[Dict[str, str]]:
    context = store.context_as_string() if store.entity_count else ""
    return [{"role": "system", "content": build_system_prompt(context)}, *conversation]


def _turn_bound_reached(state: ArchieState, services: ArchieServices) -> bool:
    max_turns = services.settings.ANALYSIS_MAX_TURNS
    return max_turns > 0 and state.get("turn_count", 0) >= max_turns


@traceable(name="analysis", tags=["llm", "analysis", "conversation"])
async def analysis_node(state: ArchieState, services: ArchieServices):
    """
    Run one PREPARE step of the analysis conversation.

    Returns:
        Suspend(question) with the agent message appended to history, or
        Continue with ``analysis_output`` once the user ends the conversation
        (or ANALYSIS_MAX_TURNS questions have been answered).

    Raises:
        Model failures propagate; the thread stays at its last checkpoint.
    """
    history = list(state.get("analysis_history") or [])
    user_input = state.get("user_input") or ""
    new_messages: List[Dict[str, str]] = []

    # A pending answer (or the opening query) joins the conversation
    if user_input and (state.get("current_analysis_query") or not history):
        new_messages.append({"role": "user", "content": user_input})

    conversation = history + new_messages
    latest = last_user_message(conversation)
    inputs = state.get("inputs") or {}
    model = state.get("model_name") or None
    store = MemoryStore.from_snapshot(state.get("system_context"))

    if user_is_done(latest) or _turn_bound_reached(state, services):
        reason = "termination phrase" if user_is_done(latest) else "turn bound"
        logger.info(f"✅ Analysis finished ({reason}); generating final output")
        prompt = services.prompts.format(ANALYSIS_AGENT, "final", {
            "history": json.dumps(conversation, ensure_ascii=False),
            "fileList": file_list(inputs),
        })
        output = await services.llm_client.complete(_model_history(conversation, store), prompt, model=model)
        return Continue({
            "analysis_output": output.strip() or NO_OUTPUT,
            "analysis_history": new_messages + [
                {"role": "agent", "content": FINAL_AGENT_MESSAGE},
                {"role": "user", "content": latest},
            ],
            "user_input": "",
            "current_analysis_query": "",
        })

    prompt_type = "initial" if len(conversation) <= 1 else "followup"
    prompt = services.prompts.format(ANALYSIS_AGENT, prompt_type, {
        "fileList": file_list(inputs),
        "fileSummaries": summarize_files(inputs),
        "query": conversation[0]["content"] if conversation else "(No initial query found)",
    })
    logger.info(f"💬 Analysis turn {state.get('turn_count', 0) + 1} ({prompt_type})")
    response_text = await services.llm_client.complete(_model_history(conversation, store), prompt, model=model)

    parsed = parse_llm_response(response_text)
    log_warnings(parsed, "analysis")
    if parsed.system_context:
        counts = store.merge(parsed.system_context["entities"], parsed.system_context["relationships"])
        logger.debug(f"Analysis knowledge update: {counts}")

    question = parsed.agent_response or response_text.strip()
    return Suspend(question, {
        "analysis_history": new_messages + [{"role": "agent", "content": question}],
        "current_analysis_query": question,
        "user_input": "",
        "turn_count": state.get("turn_count", 0) + 1,
        "system_context": store.to_dict(),
    })
