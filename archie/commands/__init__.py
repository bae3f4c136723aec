"""Command layer shared by the CLI and the API."""
from .analyze import resume_analysis, run_analysis
from .ask import run_ask
from .build_context import run_build_context
from .common import CommandResult, managed_memory, sync_memory, thread_baseline

__all__ = [
    "run_analysis",
    "resume_analysis",
    "run_ask",
    "run_build_context",
    "CommandResult",
    "managed_memory",
    "sync_memory",
    "thread_baseline",
]
