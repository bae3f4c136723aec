"""
Build-context command: summarize a system's documents into
``<system_name>_context.md`` (written next to the inputs) and fold the
knowledge found into memory.
"""
import logging
from pathlib import Path
from typing import Optional

from archie.domain.exceptions import WorkflowInputError
from archie.domain.memory_store import MemoryStore
from archie.workflows.archie_flow.config import FLOW_BUILD_CONTEXT
from archie.workflows.engine import Runner
from .common import CommandResult, sync_memory, thread_baseline, write_output

logger = logging.getLogger(__name__)


async def run_build_context(
    runner: Runner,
    memory: MemoryStore,
    system_name: str,
    inputs_dir: str | Path,
    model_name: str = "",
    thread_id: Optional[str] = None,
) -> CommandResult:
    """
    Raises:
        WorkflowInputError: Missing system name, missing directory, or no
            readable documents in it
    """
    if not system_name:
        raise WorkflowInputError("Context building requires a system name")
    if not Path(inputs_dir).is_dir():
        raise WorkflowInputError(f"Inputs directory not found: {inputs_dir}")

    logger.info(f"Building context for {system_name} from {inputs_dir}")
    result = await runner.start({
        "current_flow": FLOW_BUILD_CONTEXT,
        "user_input": f"build_context: {system_name}",
        "input_directory_path": str(inputs_dir),
        "system_name": system_name,
        "model_name": model_name,
        "system_context": memory.to_dict(),
    }, thread_id=thread_id)
    state = result.state
    sync_memory(memory, state, thread_baseline(runner, result.thread_id))

    content = state.get("context_output_content") or ""
    file_name = state.get("context_output_file_name") or ""
    output_path = write_output(inputs_dir, file_name, content) if content and file_name else None
    if output_path is None:
        logger.warning("Context building finished without output content or file name")

    return CommandResult(
        thread_id=result.thread_id,
        completed=result.is_done,
        output=content,
        output_path=output_path,
        state=state,
    )
