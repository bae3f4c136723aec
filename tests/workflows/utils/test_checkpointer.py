"""Tests for checkpoint backends."""
import pytest

from archie.workflows.engine import END, Runner, StateGraph, Suspend, Channel, append, replace
from archie.workflows.utils.checkpointer import (
    Checkpoint,
    InMemoryCheckpointer,
    SQLCheckpointer,
    create_checkpointer,
)


def make_checkpoint(thread_id="t", step=0, pending=None, next_node="a"):
    return Checkpoint(
        thread_id=thread_id,
        step=step,
        source="__start__" if step == 0 else "a",
        state={"log": [step], "nested": {"k": "v"}},
        next_node=next_node,
        pending=pending,
    )


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'state' / 'checkpoints.db'}"


@pytest.fixture(params=["memory", "sql"])
def backend(request, sqlite_url):
    if request.param == "memory":
        return InMemoryCheckpointer()
    return SQLCheckpointer(sqlite_url)


def test_put_and_read_back(backend):
    backend.put(make_checkpoint(step=0))
    backend.put(make_checkpoint(step=1, pending={"question": "q?"}))
    backend.put(make_checkpoint(thread_id="other", step=0))

    history = backend.list("t")
    latest = backend.get_latest("t")

    assert [c.step for c in history] == [0, 1]
    assert latest.step == 1
    assert latest.is_suspended
    assert latest.pending == {"question": "q?"}
    assert latest.state == {"log": [1], "nested": {"k": "v"}}


def test_unknown_thread(backend):
    assert backend.get_latest("nope") is None
    assert backend.list("nope") == []


def test_delete_thread(backend):
    backend.put(make_checkpoint(step=0))
    backend.put(make_checkpoint(step=1))

    assert backend.delete_thread("t") == 2
    assert backend.get_latest("t") is None


def test_in_memory_returns_copies():
    checkpointer = InMemoryCheckpointer()
    checkpointer.put(make_checkpoint())

    checkpointer.get_latest("t").state["log"].append("mutated")

    assert checkpointer.get_latest("t").state["log"] == [0]


def test_create_checkpointer_selects_backend(sqlite_url):
    assert isinstance(create_checkpointer("memory://"), InMemoryCheckpointer)
    assert isinstance(create_checkpointer(sqlite_url), SQLCheckpointer)


@pytest.mark.asyncio
async def test_suspended_thread_survives_process_restart(sqlite_url):
    """A second checkpointer on the same database resumes the thread."""
    channels = {"answer": Channel(replace, str), "log": Channel(append, list)}

    def build():
        graph = StateGraph(channels)
        graph.add_node("ask", lambda s: Suspend("Continue?", {"log": ["asked"]}))
        graph.add_node("done", lambda s: {"log": [f"answered {s['answer']}"]})
        graph.set_entry_point("ask")
        graph.add_edge("ask", "done")
        graph.add_edge("done", END)
        return graph.compile(resume_channel="answer")

    first = Runner(build(), checkpointer=SQLCheckpointer(sqlite_url))
    await first.start({}, thread_id="durable")

    second = Runner(build(), checkpointer=SQLCheckpointer(sqlite_url))
    assert second.get_state("durable").pending_question == "Continue?"

    result = await second.resume("durable", "yes")

    assert result.final_state["log"] == ["asked", "answered yes"]
