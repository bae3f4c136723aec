"""
Stateful workflow engine: channels, graph builder, runner.
"""
from .channels import Channel, append, apply_update, default_state, replace, union_latest
from .graph import END, START, CompiledGraph, StateGraph
from .results import Completed, Continue, RunResult, Suspend, Suspended, ThreadSnapshot
from .runner import Runner, new_thread_id

__all__ = [
    "Channel",
    "append",
    "apply_update",
    "default_state",
    "replace",
    "union_latest",
    "END",
    "START",
    "CompiledGraph",
    "StateGraph",
    "Completed",
    "Continue",
    "RunResult",
    "Suspend",
    "Suspended",
    "ThreadSnapshot",
    "Runner",
    "new_thread_id",
]
