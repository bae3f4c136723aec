"""Checkpoint storage for workflow threads.

Two backends:
  InMemoryCheckpointer: process-local, for tests and one-shot commands.
  SQLCheckpointer: SQLModel table (SQLite by default), survives restarts so a
  suspended thread can be resumed by a later process.

Checkpoints are append-only; the latest checkpoint per thread is the
thread's durable position.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from sqlalchemy.engine import make_url
from sqlmodel import Field, Session, SQLModel, create_engine, select

from archie.core.config import settings

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


@dataclass(frozen=True)
class Checkpoint:
    """
    Immutable snapshot taken after a node (or resume injection) completes.

    Attributes:
        thread_id: Owning thread
        step: Monotonic position within the thread (0 = initial state)
        source: Node that produced this checkpoint ("__start__", "__resume__" or a node name)
        state: Fully merged channel values
        next_node: Node to run next ("__end__" once finished)
        pending: {"question": ...} while suspended, else None
    """
    thread_id: str
    step: int
    source: str
    state: Dict[str, Any]
    next_node: str
    pending: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_suspended(self) -> bool:
        return self.pending is not None


class BaseCheckpointer:
    """Checkpoint storage interface."""

    def put(self, checkpoint: Checkpoint) -> None:
        raise NotImplementedError

    def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        raise NotImplementedError

    def list(self, thread_id: str) -> List[Checkpoint]:
        """All checkpoints for a thread, oldest first."""
        raise NotImplementedError

    def delete_thread(self, thread_id: str) -> int:
        raise NotImplementedError


class InMemoryCheckpointer(BaseCheckpointer):
    """Dict-backed checkpointer. Returns deep copies so callers cannot mutate history."""

    def __init__(self) -> None:
        self._threads: Dict[str, List[Checkpoint]] = {}
        self._lock = RLock()

    def put(self, checkpoint: Checkpoint) -> None:
        with self._lock:
            self._threads.setdefault(checkpoint.thread_id, []).append(copy.deepcopy(checkpoint))

    def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        with self._lock:
            history = self._threads.get(thread_id)
            return copy.deepcopy(history[-1]) if history else None

    def list(self, thread_id: str) -> List[Checkpoint]:
        with self._lock:
            return copy.deepcopy(self._threads.get(thread_id, []))

    def delete_thread(self, thread_id: str) -> int:
        with self._lock:
            return len(self._threads.pop(thread_id, []))


class CheckpointRecord(SQLModel, table=True):
    """Persisted checkpoint row."""
    __tablename__ = "workflow_checkpoints"

    id: Optional[int] = Field(default=None, primary_key=True)
    thread_id: str = Field(index=True, max_length=64)
    step: int = Field(index=True)
    source: str = Field(max_length=100)
    next_node: str = Field(max_length=100)
    state: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    pending: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_checkpoint(self) -> Checkpoint:
        return Checkpoint(
            thread_id=self.thread_id,
            step=self.step,
            source=self.source,
            state=copy.deepcopy(self.state),
            next_node=self.next_node,
            pending=copy.deepcopy(self.pending),
            created_at=self.created_at,
        )


class SQLCheckpointer(BaseCheckpointer):
    """
    SQLModel-backed checkpointer. Channel values must be JSON-serializable.

    Uses a synchronous engine; every call blocks its caller (and so the event
    loop, when called from a Runner) for one database round trip.
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        connect_args = {}
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite":
            connect_args["check_same_thread"] = False
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(database_url, connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine, tables=[CheckpointRecord.__table__])

    def put(self, checkpoint: Checkpoint) -> None:
        record = CheckpointRecord(
            thread_id=checkpoint.thread_id,
            step=checkpoint.step,
            source=checkpoint.source,
            next_node=checkpoint.next_node,
            state=checkpoint.state,
            pending=checkpoint.pending,
            created_at=checkpoint.created_at,
        )
        with Session(self.engine) as session:
            session.add(record)
            session.commit()

    def get_latest(self, thread_id: str) -> Optional[Checkpoint]:
        with Session(self.engine) as session:
            stmt = (
                select(CheckpointRecord)
                .where(CheckpointRecord.thread_id == thread_id)
                .order_by(CheckpointRecord.step.desc(), CheckpointRecord.id.desc())
                .limit(1)
            )
            record = session.exec(stmt).first()
            return record.to_checkpoint() if record else None

    def list(self, thread_id: str) -> List[Checkpoint]:
        with Session(self.engine) as session:
            stmt = (
                select(CheckpointRecord)
                .where(CheckpointRecord.thread_id == thread_id)
                .order_by(CheckpointRecord.step, CheckpointRecord.id)
            )
            return [record.to_checkpoint() for record in session.exec(stmt).all()]

    def delete_thread(self, thread_id: str) -> int:
        with Session(self.engine) as session:
            records = session.exec(
                select(CheckpointRecord).where(CheckpointRecord.thread_id == thread_id)
            ).all()
            for record in records:
                session.delete(record)
            session.commit()
            return len(records)


def create_checkpointer(database_url: Optional[str] = None) -> BaseCheckpointer:
    """
    Create the checkpointer for this process.

    ``memory://`` selects the in-memory backend; anything else is treated as
    a SQLAlchemy URL (default: CHECKPOINT_DATABASE_URL setting).
    """
    url = database_url or settings.CHECKPOINT_DATABASE_URL
    if url == MEMORY_URL:
        return InMemoryCheckpointer()
    logger.debug(f"Using SQL checkpointer at {url}")
    return SQLCheckpointer(url)
