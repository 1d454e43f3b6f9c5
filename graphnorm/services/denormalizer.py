"""Denormalizer: rebuild nested entities from flattened collections."""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Sequence

from graphnorm.domain.models import Entity, EntityId, EntityMap, HasMany, HasOne, SchemaMap
from graphnorm.services.normalizer import is_entity_id
from graphnorm.services.schema import get_schema

log = logging.getLogger(__name__)


def denormalize(
    ids: EntityId | Sequence[EntityId],
    entity_type: str,
    entities: Mapping[str, EntityMap],
    schemas: SchemaMap,
    *,
    guard_cycles: bool = True,
) -> Entity | list[Entity] | None:
    """Resolve *ids* of *entity_type* back into nested entities.

    A single id yields the entity or ``None`` when it is absent from its
    collection.  A list of ids yields a list with absent ids dropped.

    With *guard_cycles* on, an entity already being resolved further up
    the current path is treated like a dangling reference (``None`` for
    ``HasOne``, dropped from ``HasMany``).  Siblings sharing a reference
    still resolve normally.  Turning the guard off recurses without a
    bound, so cyclic stored graphs raise ``RecursionError``.
    """
    visiting: set[tuple[str, EntityId]] | None = set() if guard_cycles else None

    if isinstance(ids, (list, tuple)):
        return _resolve_many(ids, entity_type, entities, schemas, visiting)
    return _resolve(ids, entity_type, entities, schemas, visiting)


def _resolve_many(
    ids: Sequence[EntityId],
    entity_type: str,
    entities: Mapping[str, EntityMap],
    schemas: SchemaMap,
    visiting: set[tuple[str, EntityId]] | None,
) -> list[Entity]:
    resolved = (_resolve(i, entity_type, entities, schemas, visiting) for i in ids)
    return [e for e in resolved if e is not None]


def _resolve(
    entity_id: EntityId,
    entity_type: str,
    entities: Mapping[str, EntityMap],
    schemas: SchemaMap,
    visiting: set[tuple[str, EntityId]] | None,
) -> Entity | None:
    schema = get_schema(schemas, entity_type)

    collection = entities.get(entity_type)
    if collection is None or not is_entity_id(entity_id) or entity_id not in collection:
        return None

    key = (entity_type, entity_id)
    if visiting is not None:
        if key in visiting:
            log.debug("Cycle at %s/%s, leaving it unresolved", entity_type, entity_id)
            return None
        visiting.add(key)

    try:
        record: dict[str, Any] = copy.deepcopy(collection[entity_id])
        for field_name, rel in schema.relationships.items():
            value = record.get(field_name)
            if value is None:
                continue

            if isinstance(rel, HasMany):
                if isinstance(value, (list, tuple)):
                    record[field_name] = _resolve_many(
                        value, rel.target, entities, schemas, visiting
                    )
                else:
                    log.debug(
                        "%s/%s.%s is not a list, resolving to []",
                        entity_type, entity_id, field_name,
                    )
                    record[field_name] = []
            elif isinstance(rel, HasOne):
                record[field_name] = _resolve(
                    value, rel.target, entities, schemas, visiting
                )
        return record
    finally:
        if visiting is not None:
            visiting.discard(key)
