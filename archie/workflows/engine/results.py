"""
Node outcomes and run results.

Nodes return ``Continue(update)`` (or a plain mapping, treated the same way)
or ``Suspend(question, update)`` to park the thread until a human answers.
``Runner.start``/``Runner.resume`` return ``Suspended`` or ``Completed``.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class Continue:
    update: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Suspend:
    """Pause the thread and surface ``question`` to the caller.

    ``update`` is merged and checkpointed before the thread parks.
    """
    question: Any
    update: Mapping[str, Any] = field(default_factory=dict)


NodeOutcome = Union[Continue, Suspend, Mapping[str, Any], None]


def normalize_outcome(outcome: NodeOutcome) -> Union[Continue, Suspend]:
    if isinstance(outcome, (Continue, Suspend)):
        return outcome
    if outcome is None:
        return Continue({})
    if isinstance(outcome, Mapping):
        return Continue(outcome)
    raise TypeError(
        f"Node returned {type(outcome).__name__}; expected a mapping, Continue or Suspend"
    )


@dataclass(frozen=True)
class Suspended:
    thread_id: str
    question: Any
    state: Dict[str, Any]

    @property
    def is_done(self) -> bool:
        return False


@dataclass(frozen=True)
class Completed:
    thread_id: str
    final_state: Dict[str, Any]

    @property
    def is_done(self) -> bool:
        return True

    @property
    def state(self) -> Dict[str, Any]:
        return self.final_state


RunResult = Union[Suspended, Completed]


@dataclass(frozen=True)
class ThreadSnapshot:
    """Latest durable view of a thread (for inspection and the API)."""
    thread_id: str
    state: Dict[str, Any]
    next_node: Optional[str]  # None once the thread reached END
    suspended: bool
    pending_question: Any
    step: int

    @property
    def status(self) -> str:
        if self.suspended:
            return "suspended"
        if self.next_node is None:
            return "completed"
        return "interrupted"
