"""
Tests for the Runner: suspend/resume, checkpoint history, failure replay,
step limits and thread lifecycle errors.
"""
import pytest

from archie.domain.exceptions import (
    RecursionLimitError,
    ThreadConflictError,
    ThreadNotFoundError,
    ThreadNotSuspendedError,
)
from archie.workflows.engine import (
    END,
    Channel,
    Completed,
    Runner,
    StateGraph,
    Suspend,
    Suspended,
    append,
    replace,
)
from archie.workflows.utils.checkpointer import InMemoryCheckpointer


CHANNELS = {
    "answer": Channel(replace, str),
    "log": Channel(append, list),
    "greeting": Channel(replace, str),
}


def greet(state):
    return {"log": ["greet"]}


def ask(state):
    return Suspend("What is your name?", {"log": ["ask"]})


class Finish:
    """Final node; fails ``failures`` times before succeeding."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    def __call__(self, state):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("transient failure")
        return {"log": ["finish"], "greeting": f"Hello {state['answer']}"}


def build_runner(finish=None, checkpointer=None, max_steps=100) -> Runner:
    graph = StateGraph(CHANNELS)
    graph.add_node("greet", greet)
    graph.add_node("ask", ask)
    graph.add_node("finish", finish or Finish())
    graph.set_entry_point("greet")
    graph.add_edge("greet", "ask")
    graph.add_edge("ask", "finish")
    graph.add_edge("finish", END)
    return Runner(graph.compile(resume_channel="answer"), checkpointer=checkpointer, max_steps=max_steps)


# ============================================================================
# Suspend / resume
# ============================================================================

@pytest.mark.asyncio
async def test_start_suspends_with_question():
    runner = build_runner()

    result = await runner.start({}, thread_id="t1")

    assert isinstance(result, Suspended)
    assert result.question == "What is your name?"
    assert result.state["log"] == ["greet", "ask"]

    snapshot = runner.get_state("t1")
    assert snapshot.status == "suspended"
    assert snapshot.pending_question == "What is your name?"
    assert snapshot.next_node == "finish"


@pytest.mark.asyncio
async def test_resume_injects_answer_and_completes():
    runner = build_runner()
    await runner.start({}, thread_id="t1")

    result = await runner.resume("t1", "Ada")

    assert isinstance(result, Completed)
    assert result.final_state["greeting"] == "Hello Ada"
    assert result.final_state["log"] == ["greet", "ask", "finish"]
    assert runner.get_state("t1").status == "completed"


@pytest.mark.asyncio
async def test_checkpoint_history_is_ordered_and_complete():
    runner = build_runner()
    await runner.start({}, thread_id="t1")
    await runner.resume("t1", "Ada")

    history = runner.history("t1")

    assert [c.step for c in history] == [0, 1, 2, 3, 4]
    assert [c.source for c in history] == ["__start__", "greet", "ask", "__resume__", "finish"]
    assert [c.is_suspended for c in history] == [False, False, True, False, False]
    assert history[-1].next_node == END


@pytest.mark.asyncio
async def test_new_runner_over_same_checkpointer_resumes():
    checkpointer = InMemoryCheckpointer()
    await build_runner(checkpointer=checkpointer).start({}, thread_id="t1")

    result = await build_runner(checkpointer=checkpointer).resume("t1", "Grace")

    assert result.final_state["greeting"] == "Hello Grace"


# ============================================================================
# Failures and replay
# ============================================================================

@pytest.mark.asyncio
async def test_failed_node_writes_no_checkpoint_and_resume_replays():
    finish = Finish(failures=1)
    runner = build_runner(finish=finish)
    await runner.start({}, thread_id="t1")

    with pytest.raises(RuntimeError):
        await runner.resume("t1", "Ada")

    assert runner.history("t1")[-1].source == "__resume__"
    assert runner.get_state("t1").status == "interrupted"

    result = await runner.resume("t1", "Ada")

    assert result.final_state["greeting"] == "Hello Ada"
    assert result.final_state["log"] == ["greet", "ask", "finish"]
    assert finish.calls == 2


@pytest.mark.asyncio
async def test_start_with_interrupted_thread_id_replays_from_latest_checkpoint():
    calls = []

    def flaky(state):
        calls.append(state["log"])
        if len(calls) == 1:
            raise RuntimeError("boom")
        return {"log": ["flaky"]}

    graph = StateGraph(CHANNELS)
    graph.add_node("greet", greet)
    graph.add_node("flaky", flaky)
    graph.set_entry_point("greet")
    graph.add_edge("greet", "flaky")
    graph.add_edge("flaky", END)
    runner = Runner(graph.compile())

    with pytest.raises(RuntimeError):
        await runner.start({}, thread_id="t2")

    result = await runner.start({}, thread_id="t2")

    assert result.final_state["log"] == ["greet", "flaky"]
    assert calls == [["greet"], ["greet"]]


@pytest.mark.asyncio
async def test_node_cannot_mutate_state_in_place():
    def sneaky(state):
        state["log"].append("sneaky")
        return {}

    graph = StateGraph(CHANNELS)
    graph.add_node("sneaky", sneaky)
    graph.set_entry_point("sneaky")
    graph.add_edge("sneaky", END)

    result = await Runner(graph.compile()).start({"log": ["seed"]})

    assert result.final_state["log"] == ["seed"]


@pytest.mark.asyncio
async def test_step_limit_raises_recursion_error():
    graph = StateGraph(CHANNELS)
    graph.add_node("loop", lambda state: {"log": ["tick"]})
    graph.set_entry_point("loop")
    graph.add_conditional_edges("loop", lambda s: "again" if len(s["log"]) < 1000 else "stop",
                                {"again": "loop", "stop": END})
    runner = Runner(graph.compile(), max_steps=5)

    with pytest.raises(RecursionLimitError):
        await runner.start({}, thread_id="loop")

    assert runner.history("loop")[-1].step == 5


# ============================================================================
# Context and async nodes
# ============================================================================

@pytest.mark.asyncio
async def test_context_is_passed_to_two_argument_nodes():
    async def uses_context(state, context):
        return {"greeting": context["greeting"]}

    graph = StateGraph(CHANNELS)
    graph.add_node("ctx", uses_context)
    graph.set_entry_point("ctx")
    graph.add_edge("ctx", END)

    result = await Runner(graph.compile(), context={"greeting": "hi"}).start({})

    assert result.final_state["greeting"] == "hi"


# ============================================================================
# Lifecycle errors
# ============================================================================

@pytest.mark.asyncio
async def test_resume_unknown_thread_raises_not_found():
    with pytest.raises(ThreadNotFoundError):
        await build_runner().resume("missing", "x")


@pytest.mark.asyncio
async def test_resume_completed_thread_raises_not_suspended():
    runner = build_runner()
    await runner.start({}, thread_id="t1")
    await runner.resume("t1", "Ada")

    with pytest.raises(ThreadNotSuspendedError):
        await runner.resume("t1", "again")


@pytest.mark.asyncio
async def test_resume_without_resume_channel_raises_not_suspended():
    graph = StateGraph(CHANNELS)
    graph.add_node("greet", greet)
    graph.set_entry_point("greet")
    graph.add_edge("greet", END)
    runner = Runner(graph.compile())
    await runner.start({}, thread_id="t1")

    with pytest.raises(ThreadNotSuspendedError):
        await runner.resume("t1", "x")


@pytest.mark.asyncio
async def test_start_existing_suspended_thread_conflicts():
    runner = build_runner()
    await runner.start({}, thread_id="t1")

    with pytest.raises(ThreadConflictError):
        await runner.start({}, thread_id="t1")


def test_get_state_unknown_thread_is_none():
    assert build_runner().get_state("missing") is None
