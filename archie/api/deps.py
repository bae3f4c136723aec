"""
API dependencies: process-wide runners, memory file location.

Both runners share one checkpointer, so every thread is visible to every
endpoint. The model-backed runner is only built when a flow needs it;
ask threads and state reads work without LLM credentials.
"""
from functools import lru_cache
from typing import Callable

from archie.core.config import settings
from archie.workflows.archie_flow import create_runner, create_services
from archie.workflows.engine import Runner
from archie.workflows.utils.checkpointer import BaseCheckpointer, create_checkpointer


@lru_cache(maxsize=1)
def get_checkpointer() -> BaseCheckpointer:
    return create_checkpointer()


@lru_cache(maxsize=1)
def get_runner() -> Runner:
    """
    Process-wide runner with model services.

    Raises:
        ConfigurationError: LLM credentials missing (first request only)
    """
    return create_runner(create_services(), checkpointer=get_checkpointer())


@lru_cache(maxsize=1)
def get_plain_runner() -> Runner:
    """Runner without model services: enough for ask threads and reading state."""
    return create_runner(None, checkpointer=get_checkpointer())


def get_runner_provider() -> Callable[[], Runner]:
    """Deferred access to the model-backed runner, resolved per flow."""
    return get_runner


def get_memory_path() -> str:
    return settings.MEMORY_FILE_PATH
