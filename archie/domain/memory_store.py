"""
Memory Store

In-process knowledge graph of entities and relationships, persisted as a
pretty-printed JSON file. Single-writer: not safe for concurrent mutation
without external serialization.

Merge rules:
    Entity (by name):       tags = old ∪ new, properties = {**old, **new},
                            type/description replaced
    Relationship (by key):  properties = {**old, **new}
    Relationship endpoints must exist at insertion (rejected otherwise).
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from archie.domain.exceptions import MemoryFileError
from archie.models.memory import Entity, MemorySnapshot, Relationship

logger = logging.getLogger(__name__)

EntityLike = Union[Entity, Dict[str, Any]]
RelationshipLike = Union[Relationship, Dict[str, Any]]
SnapshotLike = Union[MemorySnapshot, Dict[str, Any], None]


@dataclass
class MergeCounts:
    """Outcome of merging a batch of extracted knowledge into the store."""
    entities_added: int = 0
    entities_updated: int = 0
    relationships_added: int = 0
    relationships_rejected: int = 0


class MemoryStore:
    """Entity/relationship knowledge graph with upsert-merge semantics."""

    def __init__(self, snapshot: SnapshotLike = None):
        self.file_path: Optional[Path] = None
        self._entities: Dict[str, Entity] = {}
        self._relationships: Dict[tuple, Relationship] = {}
        self.update_from_snapshot(snapshot)

    @classmethod
    def from_snapshot(cls, snapshot: SnapshotLike) -> "MemoryStore":
        """Build a store from a snapshot (model or plain dict). None → empty."""
        return cls(snapshot)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, path: Union[str, Path]) -> None:
        """
        Load the memory file into this store.

        A missing file initializes an empty store. Any other I/O or parse
        error raises MemoryFileError.
        """
        self.file_path = Path(path).resolve()
        logger.info(f"Loading memory from {self.file_path}")

        try:
            raw = self.file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"Memory file not found at {self.file_path}, starting empty")
            self.update_from_snapshot(None)
            return
        except OSError as e:
            raise MemoryFileError(str(self.file_path), f"read failed: {e}") from e

        try:
            data = json.loads(raw)
            snapshot = MemorySnapshot.from_dict(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise MemoryFileError(str(self.file_path), f"malformed content: {e}") from e

        self.update_from_snapshot(snapshot)
        logger.debug(
            f"Loaded {len(self._entities)} entities and "
            f"{len(self._relationships)} relationships"
        )

    def save(self, path: Union[str, Path, None] = None) -> Path:
        """
        Write the current snapshot as pretty-printed UTF-8 JSON.

        Uses the path from the last ``load`` when ``path`` is omitted.
        I/O failures propagate to the caller.
        """
        if path is not None:
            self.file_path = Path(path).resolve()
        if self.file_path is None:
            raise MemoryFileError("<unset>", "no file path (call load() or pass a path)")

        logger.info(f"Saving memory to {self.file_path}")
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_path.write_text(self.context_as_string(), encoding="utf-8")
        return self.file_path

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_or_update_entity(self, entity: EntityLike) -> bool:
        """
        Insert or merge an entity by name.

        Returns:
            True if the entity was newly created, False if merged into an existing one
        """
        new = _as_entity(entity)
        existing = self._entities.get(new.name)

        if existing is None:
            self._entities[new.name] = new
            logger.debug(f"Added entity '{new.name}'")
            return True

        existing.type = new.type
        existing.description = new.description
        existing.tags = list(dict.fromkeys([*existing.tags, *new.tags]))
        existing.properties = {**existing.properties, **new.properties}
        logger.debug(f"Updated entity '{new.name}'")
        return False

    def add_or_update_relationship(self, relationship: RelationshipLike) -> bool:
        """
        Insert or merge a relationship keyed by (from, to, type).

        Returns:
            False (with a warning) when either endpoint entity is absent;
            the relationship list is left untouched. True otherwise.
        """
        new = _as_relationship(relationship)

        if new.from_ not in self._entities or new.to not in self._entities:
            logger.warning(
                f"Cannot add relationship '{new.type}' from '{new.from_}' to '{new.to}': "
                "one or both entities do not exist"
            )
            return False

        existing = self._relationships.get(new.key)
        if existing is None:
            self._relationships[new.key] = new
            logger.debug(f"Added relationship {new.from_} --[{new.type}]--> {new.to}")
        else:
            existing.properties = {**existing.properties, **new.properties}
            logger.debug(f"Updated relationship {new.from_} --[{new.type}]--> {new.to}")
        return True

    def merge(
        self,
        entities: Iterable[EntityLike] = (),
        relationships: Iterable[RelationshipLike] = (),
    ) -> MergeCounts:
        """Upsert a batch: all entities first, then relationships."""
        counts = MergeCounts()
        for entity in entities:
            if self.add_or_update_entity(entity):
                counts.entities_added += 1
            else:
                counts.entities_updated += 1
        for relationship in relationships:
            if self.add_or_update_relationship(relationship):
                counts.relationships_added += 1
            else:
                counts.relationships_rejected += 1
        return counts

    def merge_snapshot(self, snapshot: SnapshotLike) -> MergeCounts:
        """Upsert everything in another snapshot into this store."""
        if isinstance(snapshot, MemorySnapshot):
            parsed = snapshot
        else:
            parsed = MemorySnapshot.from_dict(snapshot)
        return self.merge(parsed.entities, parsed.relationships)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_entity_by_name(self, name: str) -> Optional[Entity]:
        entity = self._entities.get(name)
        return entity.model_copy(deep=True) if entity else None

    def find_relations(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        type: Optional[str] = None,
    ) -> List[Relationship]:
        """Relationships matching every provided field; omitted fields match anything."""
        return [
            r.model_copy(deep=True)
            for r in self._relationships.values()
            if (from_ is None or r.from_ == from_)
            and (to is None or r.to == to)
            and (type is None or r.type == type)
        ]

    @property
    def entity_count(self) -> int:
        return len(self._entities)

    @property
    def relationship_count(self) -> int:
        return len(self._relationships)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> MemorySnapshot:
        return MemorySnapshot(
            entities=[e.model_copy(deep=True) for e in self._entities.values()],
            relationships=[r.model_copy(deep=True) for r in self._relationships.values()],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot as a JSON-compatible dict (the ``system_context`` channel value)."""
        return self.snapshot().to_dict()

    def update_from_snapshot(self, snapshot: SnapshotLike) -> None:
        """Replace the whole store with the given snapshot (deep copy)."""
        if isinstance(snapshot, MemorySnapshot):
            parsed = snapshot.model_copy(deep=True)
        else:
            parsed = MemorySnapshot.from_dict(snapshot)

        self._entities = {e.name: e for e in parsed.entities}
        self._relationships = {r.key: r for r in parsed.relationships}

    def context_as_string(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _as_entity(entity: EntityLike) -> Entity:
    if isinstance(entity, Entity):
        return entity.model_copy(deep=True)
    return Entity.model_validate(entity)


def _as_relationship(relationship: RelationshipLike) -> Relationship:
    if isinstance(relationship, Relationship):
        return relationship.model_copy(deep=True)
    return Relationship.model_validate(relationship)
