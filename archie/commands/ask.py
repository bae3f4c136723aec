"""Ask command: single-turn request through the ``ask`` flow."""
import logging
from typing import Optional

from archie.domain.exceptions import WorkflowInputError
from archie.workflows.archie_flow.config import FLOW_ASK
from archie.workflows.engine import Runner
from .common import CommandResult

logger = logging.getLogger(__name__)


async def run_ask(
    runner: Runner,
    text: str,
    model_name: str = "",
    thread_id: Optional[str] = None,
) -> CommandResult:
    if not text or not text.strip():
        raise WorkflowInputError("No input provided for the 'ask' command")

    result = await runner.start({
        "current_flow": FLOW_ASK,
        "user_input": text,
        "model_name": model_name,
    }, thread_id=thread_id)
    state = result.state
    logger.debug(f"Ask thread {result.thread_id} finished")
    return CommandResult(
        thread_id=result.thread_id,
        completed=result.is_done,
        output=state.get("response") or "No response generated.",
        state=state,
    )
