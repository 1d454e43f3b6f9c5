"""Schema registry: declarative per-type identifier and relationship rules.

Schemas refer to each other by type name only, so mutually recursive
relationships (post → comments → post) can be declared without any
eager resolution.  Unknown target types surface as
``SchemaNotFoundError`` the first time a normalize / denormalize call
actually walks into them.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from graphnorm.domain.errors import SchemaNotFoundError
from graphnorm.domain.models import (
    EntitySchema,
    HasMany,
    HasOne,
    RelationshipConfig,
    SchemaMap,
)

log = logging.getLogger(__name__)


def has_one(target: str) -> HasOne:
    return HasOne(target)


def has_many(target: str) -> HasMany:
    return HasMany(target)


def create_schema(
    id_key: str = "id",
    relationships: Mapping[str, RelationshipConfig] | None = None,
) -> EntitySchema:
    """Build an ``EntitySchema``.  Target types are not checked here."""
    return EntitySchema(id_key=id_key, relationships=dict(relationships or {}))


def get_schema(schemas: SchemaMap, entity_type: str) -> EntitySchema:
    schema = schemas.get(entity_type)
    if schema is None:
        raise SchemaNotFoundError(entity_type)
    return schema


class SchemaRegistry(Mapping[str, EntitySchema]):
    """Read-only schema map with lookup helpers."""

    def __init__(self, schemas: SchemaMap | None = None) -> None:
        self._schemas: dict[str, EntitySchema] = dict(schemas or {})

    def __getitem__(self, entity_type: str) -> EntitySchema:
        return self._schemas[entity_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def get_schema(self, entity_type: str) -> EntitySchema:
        return get_schema(self._schemas, entity_type)

    def types(self) -> list[str]:
        return list(self._schemas)

    def relationships_to(self, target: str) -> list[tuple[str, str, RelationshipConfig]]:
        """Every ``(owner_type, field, relationship)`` pointing at *target*."""
        found: list[tuple[str, str, RelationshipConfig]] = []
        for owner, schema in self._schemas.items():
            for field_name, rel in schema.relationships.items():
                if rel.target == target:
                    found.append((owner, field_name, rel))
        return found

    def validate(self) -> list[str]:
        """Describe every relationship whose target type is not registered.

        Returns an empty list when the map is closed.  Never run
        implicitly; resolution stays lazy.
        """
        problems: list[str] = []
        for owner, schema in self._schemas.items():
            for field_name, rel in schema.relationships.items():
                if rel.target not in self._schemas:
                    kind = "has_many" if isinstance(rel, HasMany) else "has_one"
                    problems.append(
                        f"{owner}.{field_name}: {kind} '{rel.target}' is not a known type"
                    )
        if problems:
            log.debug("Schema validation found %d problem(s)", len(problems))
        return problems
