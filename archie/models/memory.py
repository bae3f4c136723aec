"""
Knowledge graph models.

Entities are keyed by name; relationships by (from, to, type).
Serialized with ``by_alias=True`` so relationship endpoints are written as
``from``/``to`` in the memory file.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Entity(BaseModel):
    """A node in the knowledge graph (service, data store, ADR, requirement...)."""

    name: str = Field(min_length=1, description="Unique key within one memory store")
    type: str = Field(default="concept")
    description: str = Field(default="")
    tags: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: List[str]) -> List[str]:
        # Order-preserving set semantics
        return list(dict.fromkeys(t for t in tags if t))


class Relationship(BaseModel):
    """A directed, typed edge between two entities."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from", min_length=1)
    to: str = Field(min_length=1)
    type: str = Field(min_length=1)
    properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> tuple:
        return (self.from_, self.to, self.type)


class MemorySnapshot(BaseModel):
    """Serializable form of the memory store (the memory file's top-level object)."""

    entities: List[Entity] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MemorySnapshot":
        if not data:
            return cls()
        return cls.model_validate(data)


def empty_snapshot() -> Dict[str, Any]:
    """Default factory for the ``system_context`` channel."""
    return {"entities": [], "relationships": []}
