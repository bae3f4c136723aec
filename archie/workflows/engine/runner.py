"""
Execution Runner

Drives one thread through a compiled graph:

    START ─route─▶ node ─merge+checkpoint─▶ edge ─▶ node ... ─▶ END
                     │
                     └─ Suspend(question) ─merge+checkpoint(pending)─▶ return Suspended

Resume injects the human's answer into the graph's resume channel (merged
and checkpointed like any node update) and continues from the node recorded
in the suspension checkpoint.

Failure semantics: a node exception propagates unchanged and no checkpoint
is written for the failed step. The thread's durable position stays at the
previous checkpoint, so retrying ``resume`` (or ``start`` with the same
thread id) replays deterministically from there.

Checkpoint writes are synchronous calls into the checkpointer. With the
SQL checkpointer each step blocks the event loop for one short database
round trip; nodes themselves are awaited.
"""
import inspect
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from archie.domain.exceptions import (
    RecursionLimitError,
    ThreadConflictError,
    ThreadNotFoundError,
    ThreadNotSuspendedError,
)
from archie.workflows.utils.checkpointer import BaseCheckpointer, Checkpoint, InMemoryCheckpointer
from .channels import apply_update, default_state
from .graph import END, START, CompiledGraph
from .results import Completed, RunResult, Suspend, Suspended, ThreadSnapshot, normalize_outcome

logger = logging.getLogger(__name__)

RESUME_SOURCE = "__resume__"
DEFAULT_MAX_STEPS = 100


def new_thread_id() -> str:
    return str(uuid.uuid4())


class Runner:
    """
    Executes threads of one compiled graph.

    Args:
        graph: Compiled, validated graph
        checkpointer: Where checkpoints are written (in-memory by default)
        context: Passed as the second argument to nodes that accept it
            (LLM client, extractor, document source, ...)
        max_steps: Node executions allowed per start/resume call
    """

    def __init__(
        self,
        graph: CompiledGraph,
        checkpointer: Optional[BaseCheckpointer] = None,
        context: Any = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ):
        self.graph = graph
        self.checkpointer = checkpointer or InMemoryCheckpointer()
        self.context = context
        self.max_steps = max_steps

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(
        self,
        initial_state: Mapping[str, Any],
        thread_id: Optional[str] = None,
    ) -> RunResult:
        """
        Start a new thread from START.

        If ``thread_id`` names a thread whose last run was interrupted by a
        node failure, execution replays from its latest checkpoint instead.
        """
        thread_id = thread_id or new_thread_id()
        latest = self.checkpointer.get_latest(thread_id)

        if latest is not None:
            if latest.is_suspended or latest.next_node == END:
                raise ThreadConflictError(thread_id)
            logger.info(f"Thread {thread_id}: replaying from step {latest.step} ({latest.next_node})")
            return await self._run(thread_id, latest.state, latest.next_node, latest.step)

        state = apply_update(self.graph.channels, default_state(self.graph.channels), initial_state)
        first = self.graph.next_node(START, state)
        self._checkpoint(thread_id, 0, START, state, first)
        logger.info(f"Thread {thread_id}: started, entry → {first}")
        return await self._run(thread_id, state, first, 0)

    async def resume(self, thread_id: str, resume_value: Any) -> RunResult:
        """
        Continue a suspended thread with the human's answer.

        The answer is injected into the resume channel on top of the most
        recent suspension checkpoint. If a previous resume of the same
        suspension crashed mid-way, this replays from that suspension point.
        """
        if self.graph.resume_channel is None:
            raise ThreadNotSuspendedError(thread_id)

        history = self.checkpointer.list(thread_id)
        if not history:
            raise ThreadNotFoundError(thread_id)

        base = self._resumable_checkpoint(history)
        if base is None:
            raise ThreadNotSuspendedError(thread_id)

        step = history[-1].step + 1
        state = apply_update(
            self.graph.channels,
            base.state,
            {self.graph.resume_channel: resume_value},
        )
        self._checkpoint(thread_id, step, RESUME_SOURCE, state, base.next_node)
        logger.info(f"Thread {thread_id}: resumed at step {step} → {base.next_node}")
        return await self._run(thread_id, state, base.next_node, step)

    def get_state(self, thread_id: str) -> Optional[ThreadSnapshot]:
        latest = self.checkpointer.get_latest(thread_id)
        if latest is None:
            return None
        return ThreadSnapshot(
            thread_id=thread_id,
            state=latest.state,
            next_node=None if latest.next_node == END else latest.next_node,
            suspended=latest.is_suspended,
            pending_question=latest.pending["question"] if latest.is_suspended else None,
            step=latest.step,
        )

    def history(self, thread_id: str) -> List[Checkpoint]:
        return self.checkpointer.list(thread_id)

    # ------------------------------------------------------------------
    # Execution loop
    # ------------------------------------------------------------------

    async def _run(self, thread_id: str, state: Dict[str, Any], node: str, step: int) -> RunResult:
        executed = 0
        while node != END:
            if executed >= self.max_steps:
                raise RecursionLimitError(thread_id, self.max_steps)

            outcome = normalize_outcome(await self._invoke(node, state))
            executed += 1
            step += 1

            state = apply_update(self.graph.channels, state, outcome.update)
            next_node = self.graph.next_node(node, state)

            if isinstance(outcome, Suspend):
                self._checkpoint(
                    thread_id, step, node, state, next_node,
                    pending={"question": outcome.question},
                )
                logger.info(f"Thread {thread_id}: suspended in '{node}' (resume → {next_node})")
                return Suspended(thread_id=thread_id, question=outcome.question, state=state)

            self._checkpoint(thread_id, step, node, state, next_node)
            logger.debug(f"Thread {thread_id}: '{node}' done → {next_node}")
            node = next_node

        logger.info(f"Thread {thread_id}: completed at step {step}")
        return Completed(thread_id=thread_id, final_state=state)

    async def _invoke(self, node: str, state: Dict[str, Any]) -> Any:
        spec = self.graph.nodes[node]
        # Nodes get a private copy; only their returned update reaches the state
        view = apply_update(self.graph.channels, state, {})
        if spec.accepts_context:
            result = spec.fn(view, self.context)
        else:
            result = spec.fn(view)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _checkpoint(
        self,
        thread_id: str,
        step: int,
        source: str,
        state: Dict[str, Any],
        next_node: str,
        pending: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.checkpointer.put(Checkpoint(
            thread_id=thread_id,
            step=step,
            source=source,
            state=state,
            next_node=next_node,
            pending=pending,
        ))

    @staticmethod
    def _resumable_checkpoint(history: List[Checkpoint]) -> Optional[Checkpoint]:
        """
        Most recent suspension checkpoint, provided the thread has not since
        suspended again or finished.
        """
        if history[-1].next_node == END and not history[-1].is_suspended:
            return None
        for checkpoint in reversed(history):
            if checkpoint.is_suspended:
                return checkpoint
        return None
