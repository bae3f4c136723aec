"""
Pytest configuration and fixtures for testing.

No test talks to a real model: ``FakeLLMClient`` replays scripted responses
and records every call, ``FakeExtractor`` returns canned knowledge.
"""
import asyncio
import os

os.environ.setdefault("LANGSMITH_TRACING", "false")

from typing import Callable, List, Mapping, Optional, Sequence, Union

import pytest

from archie.core.config import Settings
from archie.services.documents import DocumentSource
from archie.services.extraction import ExtractionResult, KnowledgeExtractor
from archie.services.llm import BaseLLMClient
from archie.services.prompts import PromptService
from archie.workflows.archie_flow import build_archie_graph
from archie.workflows.archie_flow.prompts import DEFAULT_PROMPTS
from archie.workflows.archie_flow.services import ArchieServices
from archie.workflows.engine import Runner
from archie.workflows.utils.checkpointer import InMemoryCheckpointer


Response = Union[str, Exception]


class FakeLLMClient(BaseLLMClient):
    """Scripted LLM: pops one response per call (exceptions are raised).

    ``delay`` makes each call yield to the event loop first, so concurrent
    callers interleave.
    """

    def __init__(
        self,
        responses: Optional[Sequence[Response]] = None,
        default: str = "OK",
        delay: Optional[float] = None,
    ):
        self.delay = delay
        self.model = "fake-model"
        self.responses: List[Response] = list(responses or [])
        self.default = default
        self.calls: List[dict] = []

    def _next(self, history, prompt, model) -> str:
        self.calls.append({"history": list(history), "prompt": prompt, "model": model})
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    async def complete(self, history, prompt, model=None) -> str:
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        return self._next(history, prompt, model)


class FakeExtractor(KnowledgeExtractor):
    """Returns canned results, or raises ``error`` when set."""

    def __init__(
        self,
        results: Optional[List[ExtractionResult]] = None,
        error: Optional[Exception] = None,
    ):
        self.results = results or []
        self.error = error
        self.calls: List[Mapping[str, str]] = []

    async def extract(self, documents, model=None):
        self.calls.append(dict(documents))
        if self.error is not None:
            raise self.error
        return self.results


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def llm_factory():
    """Build extra scripted clients: ``llm_factory(["reply", RuntimeError()])``."""
    return FakeLLMClient


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def extractor_factory():
    """Build extra canned extractors: ``extractor_factory([ExtractionResult(...)])``."""
    return FakeExtractor


@pytest.fixture
def test_settings() -> Settings:
    return Settings(ANALYSIS_MAX_TURNS=0, GRAPH_MAX_STEPS=100)


@pytest.fixture
def services(fake_llm, fake_extractor, test_settings) -> ArchieServices:
    return ArchieServices(
        llm_client=fake_llm,
        extractor=fake_extractor,
        prompts=PromptService(DEFAULT_PROMPTS),
        documents=DocumentSource(),
        settings=test_settings,
    )


@pytest.fixture
def checkpointer() -> InMemoryCheckpointer:
    return InMemoryCheckpointer()


@pytest.fixture
def make_runner(checkpointer) -> Callable[[ArchieServices], Runner]:
    """Runner over the real Archie graph, sharing one in-memory checkpointer."""
    def factory(services: ArchieServices, max_steps: int = 100) -> Runner:
        return Runner(build_archie_graph(), checkpointer=checkpointer, context=services, max_steps=max_steps)
    return factory


@pytest.fixture
def docs_dir(tmp_path):
    """Directory with two design documents and one file that must be ignored."""
    directory = tmp_path / "docs"
    directory.mkdir()
    (directory / "overview.md").write_text("X depends on Y.", encoding="utf-8")
    (directory / "notes.txt").write_text("Billing service writes invoices to Postgres.", encoding="utf-8")
    (directory / "diagram.png").write_bytes(b"\x89PNG")
    return directory
