"""Pure domain models — zero external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar, Union

EntityId = Union[str, int]
Entity = dict[str, Any]
EntityMap = dict[EntityId, Entity]

T = TypeVar("T")


# ── Relationships ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HasOne:
    """Field holds a single nested entity (or, once normalized, its id)."""

    target: str


@dataclass(frozen=True)
class HasMany:
    """Field holds an ordered list of nested entities (or their ids)."""

    target: str


RelationshipConfig = Union[HasOne, HasMany]


# ── Schemas ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EntitySchema:
    """How to identify one entity type and which of its fields are relationships."""

    id_key: str = "id"
    relationships: Mapping[str, RelationshipConfig] = field(default_factory=dict)

    def identify(self, entity: Mapping[str, Any]) -> EntityId | None:
        return entity.get(self.id_key)

    def targets(self) -> set[str]:
        return {rel.target for rel in self.relationships.values()}


SchemaMap = Mapping[str, EntitySchema]


# ── Normalization output ────────────────────────────────────────────────────

@dataclass
class NormalizedData:
    """Flattened collections plus the id(s) of the top-level input."""

    entities: dict[str, EntityMap] = field(default_factory=dict)
    result: EntityId | list[EntityId] | None = None

    def collection(self, entity_type: str) -> EntityMap:
        return self.entities.get(entity_type, {})

    def counts(self) -> dict[str, int]:
        return {t: len(m) for t, m in self.entities.items()}

    def to_dict(self) -> dict[str, Any]:
        return {"entities": self.entities, "result": self.result}


# ── Operation results ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a store mutation that may legitimately fail.

    Expected runtime failures (a missing id, say) come back here instead
    of being raised, so callers can log and carry on.
    """

    success: bool
    data: T | None = None
    error: str = ""
    error_code: str = ""

    @classmethod
    def ok(cls, data: T) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, *, code: str) -> "OperationResult[T]":
        return cls(success=False, error=error, error_code=code)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "error_code": self.error_code,
        }


# ── Reference lookup ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Referrer:
    """An entity whose relationship field points at some other entity."""

    entity_type: str
    entity_id: EntityId
    field: str
    relationship: RelationshipConfig
