"""
Analyze command: interactive, file-grounded architecture analysis.

Starts an ``analyze`` thread and relays each suspended question to the
human through ``ask_user`` until the conversation completes. If
``ask_user`` returns None (no more input, e.g. EOF), the thread is left
parked and can be continued later with ``resume_analysis``. ``ask_user``
may be a plain function or a coroutine function.
"""
import inspect
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from archie.domain.exceptions import WorkflowInputError
from archie.domain.memory_store import MemoryStore
from archie.workflows.archie_flow.config import ANALYSIS_OUTPUT_FILE, DEFAULT_ANALYSIS_QUERY, FLOW_ANALYZE
from archie.workflows.engine import Completed, RunResult, Runner
from .common import CommandResult, sync_memory, thread_baseline, write_output

logger = logging.getLogger(__name__)

AskUser = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]


async def run_analysis(
    runner: Runner,
    memory: MemoryStore,
    inputs_dir: str | Path,
    query: str = "",
    ask_user: Optional[AskUser] = None,
    model_name: str = "",
    thread_id: Optional[str] = None,
) -> CommandResult:
    """
    Run an analysis conversation over the documents in ``inputs_dir``.

    Raises:
        WorkflowInputError: ``inputs_dir`` is not a directory
    """
    if not Path(inputs_dir).is_dir():
        raise WorkflowInputError(f"Inputs directory not found: {inputs_dir}")

    query = query or DEFAULT_ANALYSIS_QUERY
    logger.info(f"Starting analysis of {inputs_dir}")
    result = await runner.start({
        "current_flow": FLOW_ANALYZE,
        "user_input": query,
        "input_directory_path": str(inputs_dir),
        "model_name": model_name,
        "system_context": memory.to_dict(),
    }, thread_id=thread_id)
    logger.info(f"Analysis thread: {result.thread_id}")

    return await _converse(runner, memory, result, ask_user)


async def resume_analysis(
    runner: Runner,
    memory: MemoryStore,
    thread_id: str,
    answer: str,
    ask_user: Optional[AskUser] = None,
) -> CommandResult:
    """
    Answer the pending question of a parked analysis thread.

    Raises:
        ThreadNotFoundError: Unknown thread id
        ThreadNotSuspendedError: Thread is not waiting for an answer
    """
    result = await runner.resume(thread_id, answer)
    return await _converse(runner, memory, result, ask_user)


async def _converse(
    runner: Runner,
    memory: MemoryStore,
    result: RunResult,
    ask_user: Optional[AskUser],
) -> CommandResult:
    while not result.is_done:
        answer = ask_user(result.question) if ask_user else None
        if inspect.isawaitable(answer):
            answer = await answer
        if answer is None:
            logger.info(f"Analysis thread {result.thread_id} parked awaiting input")
            sync_memory(memory, result.state, thread_baseline(runner, result.thread_id))
            return CommandResult(
                thread_id=result.thread_id,
                completed=False,
                pending_question=result.question,
                state=result.state,
            )
        result = await runner.resume(result.thread_id, answer)

    return _finish(runner, memory, result)


def _finish(runner: Runner, memory: MemoryStore, result: Completed) -> CommandResult:
    state = result.final_state
    sync_memory(memory, state, thread_baseline(runner, result.thread_id))
    output = state.get("analysis_output") or ""
    output_path = None
    if state.get("input_directory_path"):
        output_path = write_output(state["input_directory_path"], ANALYSIS_OUTPUT_FILE, output)
    return CommandResult(
        thread_id=result.thread_id,
        completed=True,
        output=output,
        output_path=output_path,
        state=state,
    )
