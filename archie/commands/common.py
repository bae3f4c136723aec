"""
Shared command plumbing: memory load/flush around a command, output files.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from archie.domain.memory_store import MemoryStore, MergeCounts, SnapshotLike
from archie.models.memory import MemorySnapshot
from archie.workflows.engine import Runner

logger = logging.getLogger(__name__)


@contextmanager
def managed_memory(path: str | Path) -> Iterator[MemoryStore]:
    """
    Load the memory file for one command and always flush it afterwards.

    The command syncs the store from its final thread state; whatever the
    store holds when the block exits (normally or not) is written back.
    """
    store = MemoryStore()
    store.load(path)
    try:
        yield store
    finally:
        store.save()
        logger.debug(f"Memory flushed ({store.entity_count} entities, {store.relationship_count} relationships)")


def thread_baseline(runner: Runner, thread_id: str) -> Optional[Dict[str, Any]]:
    """The ``system_context`` a thread was started with (its step-0 checkpoint)."""
    history = runner.history(thread_id)
    if not history:
        return None
    return history[0].state.get("system_context")


def sync_memory(
    store: MemoryStore,
    state: Optional[Mapping[str, Any]],
    baseline: SnapshotLike = None,
) -> MergeCounts:
    """
    Fold the knowledge a thread produced into the store.

    Only entities and relationships that are new or changed relative to
    ``baseline`` (the snapshot the thread started from) are upserted, so
    facts written to the memory file while the thread was parked are not
    reverted to the thread's stale copy. Without a baseline the whole
    snapshot is upserted.
    """
    if not state or state.get("system_context") is None:
        return MergeCounts()

    current = MemorySnapshot.from_dict(state["system_context"])
    before = baseline if isinstance(baseline, MemorySnapshot) else MemorySnapshot.from_dict(baseline)
    old_entities = {e.name: e for e in before.entities}
    old_relationships = {r.key: r for r in before.relationships}

    entities = [e for e in current.entities if old_entities.get(e.name) != e]
    relationships = [r for r in current.relationships if old_relationships.get(r.key) != r]
    if not entities and not relationships:
        return MergeCounts()

    counts = store.merge(entities, relationships)
    logger.debug(
        f"Memory sync: {counts.entities_added} added, {counts.entities_updated} updated, "
        f"{counts.relationships_added} relationships"
    )
    return counts


def write_output(directory: str | Path, file_name: str, content: str) -> Path:
    path = Path(directory).resolve() / file_name
    path.write_text(content or "", encoding="utf-8")
    logger.info(f"Output saved to {path}")
    return path


@dataclass
class CommandResult:
    """What a command produced: the thread, its output and where it was written."""
    thread_id: str
    completed: bool
    output: str = ""
    output_path: Optional[Path] = None
    pending_question: Optional[str] = None
    state: Optional[Dict[str, Any]] = None
