"""
Thread API Routes

Start, resume and inspect workflow threads. Analysis threads never block
on a human here: each call runs until the next question (or completion)
and returns it; the client answers with ``POST /threads/{id}/resume``.

Requests that touch the memory file are serialized: each one loads the
file, runs its flow and writes the file back while holding ``MEMORY_LOCK``.
"""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from archie.api.deps import get_memory_path, get_plain_runner, get_runner, get_runner_provider
from archie.commands import (
    CommandResult,
    managed_memory,
    resume_analysis,
    run_analysis,
    run_ask,
    run_build_context,
)
from archie.domain.exceptions import ThreadNotFoundError, WorkflowInputError
from archie.domain.memory_store import MemoryStore
from archie.workflows.engine import Runner

router = APIRouter(prefix="/threads", tags=["threads"])

MEMORY_LOCK = asyncio.Lock()


@asynccontextmanager
async def locked_memory(path: str | Path) -> AsyncIterator[MemoryStore]:
    """``managed_memory`` held under ``MEMORY_LOCK`` for the whole block."""
    async with MEMORY_LOCK:
        with managed_memory(path) as memory:
            yield memory


# ============================================================================
# Request / Response Models
# ============================================================================

class StartThreadRequest(BaseModel):
    flow: Literal["analyze", "build_context", "ask"]
    user_input: str = Field(default="", description="Analysis query or ask text")
    input_directory_path: str = Field(default="", description="Documents directory (analyze, build_context)")
    system_name: str = Field(default="", description="System name (build_context)")
    model_name: str = Field(default="", description="Model override")
    thread_id: Optional[str] = Field(default=None, description="Client-chosen thread id")


class ResumeThreadRequest(BaseModel):
    answer: str


class ThreadResponse(BaseModel):
    thread_id: str
    status: Literal["suspended", "completed"]
    question: Optional[str] = None
    output: str = ""
    output_path: Optional[str] = None


class ThreadStateResponse(BaseModel):
    thread_id: str
    status: Literal["suspended", "completed", "interrupted"]
    next_node: Optional[str] = None
    pending_question: Optional[str] = None
    step: int
    values: Dict[str, Any]


def _to_response(result: CommandResult) -> ThreadResponse:
    return ThreadResponse(
        thread_id=result.thread_id,
        status="completed" if result.completed else "suspended",
        question=result.pending_question,
        output=result.output,
        output_path=str(result.output_path) if result.output_path else None,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def start_thread(
    request: StartThreadRequest,
    plain_runner: Runner = Depends(get_plain_runner),
    runner_provider: Callable[[], Runner] = Depends(get_runner_provider),
    memory_path: str = Depends(get_memory_path),
) -> ThreadResponse:
    """
    Start a thread for one flow.

    **Errors**:
    - Missing inputs directory / system name → 400
    - Thread id already used by a suspended or finished thread → 409
    - LLM credentials missing (analyze, build_context) → 503
    """
    if request.flow == "ask":
        return _to_response(await run_ask(
            plain_runner,
            request.user_input,
            model_name=request.model_name,
            thread_id=request.thread_id,
        ))

    if not request.input_directory_path:
        raise WorkflowInputError("input_directory_path is required for this flow")

    runner = runner_provider()
    async with locked_memory(memory_path) as memory:
        if request.flow == "analyze":
            result = await run_analysis(
                runner,
                memory,
                inputs_dir=request.input_directory_path,
                query=request.user_input,
                model_name=request.model_name,
                thread_id=request.thread_id,
            )
        else:
            result = await run_build_context(
                runner,
                memory,
                system_name=request.system_name,
                inputs_dir=request.input_directory_path,
                model_name=request.model_name,
                thread_id=request.thread_id,
            )
    return _to_response(result)


@router.post("/{thread_id}/resume", response_model=ThreadResponse)
async def resume_thread(
    thread_id: str,
    request: ResumeThreadRequest,
    runner: Runner = Depends(get_runner),
    memory_path: str = Depends(get_memory_path),
) -> ThreadResponse:
    """
    Answer a suspended thread's pending question.

    **Errors**:
    - Unknown thread → 404
    - Thread not waiting for input → 409
    """
    async with locked_memory(memory_path) as memory:
        result = await resume_analysis(runner, memory, thread_id, request.answer)
    return _to_response(result)


@router.get("/{thread_id}", response_model=ThreadStateResponse)
async def get_thread(thread_id: str, runner: Runner = Depends(get_plain_runner)) -> ThreadStateResponse:
    snapshot = runner.get_state(thread_id)
    if snapshot is None:
        raise ThreadNotFoundError(thread_id)
    return ThreadStateResponse(
        thread_id=thread_id,
        status=snapshot.status,
        next_node=snapshot.next_node,
        pending_question=snapshot.pending_question,
        step=snapshot.step,
        values=snapshot.state,
    )
