"""Normalizer: flatten nested entity graphs into per-type collections.

Walks a nested object (or list of objects) against a root schema.  Every
entity encountered is shallow-copied into its type's ``EntityMap`` and
each nested relationship value is replaced by the nested entity's id.

Recursion only follows concretely provided nested objects; values that
are already ids are kept as references.  A nested dict that is its own
ancestor is emitted as its id instead of being walked again.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from graphnorm.domain.errors import (
    InvalidRelationshipError,
    MissingIdentifierError,
    NormalizationError,
)
from graphnorm.domain.models import (
    EntityId,
    EntitySchema,
    HasMany,
    HasOne,
    NormalizedData,
    SchemaMap,
)
from graphnorm.services.schema import get_schema

log = logging.getLogger(__name__)


def is_entity_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def normalize(
    data: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None,
    root_type: str,
    schemas: SchemaMap,
) -> NormalizedData:
    """Normalize *data* against the schema registered for *root_type*.

    ``result`` mirrors the input: a list of ids for list input, a single
    id otherwise (``None`` when *data* is ``None``).

    Raises:
        SchemaNotFoundError: root or relationship target type is unknown.
        MissingIdentifierError: an entity has no value at its id key.
        InvalidRelationshipError: a relationship field has the wrong shape.
    """
    schema = get_schema(schemas, root_type)
    out = NormalizedData()

    if isinstance(data, (list, tuple)):
        out.result = [
            _visit(item, root_type, schema, schemas, out, ()) for item in data
        ]
    elif data is not None:
        out.result = _visit(data, root_type, schema, schemas, out, ())

    log.debug("Normalized %s input into %s", root_type, out.counts())
    return out


def _visit(
    entity: Any,
    entity_type: str,
    schema: EntitySchema,
    schemas: SchemaMap,
    out: NormalizedData,
    path: tuple[int, ...],
) -> EntityId:
    if not isinstance(entity, Mapping):
        raise NormalizationError(
            f"Expected a mapping for type '{entity_type}', got {type(entity).__name__}"
        )

    entity_id = schema.identify(entity)
    if entity_id is None:
        raise MissingIdentifierError(entity_type, schema.id_key)

    # Ancestor on the current path: it is stored when its own visit unwinds.
    if id(entity) in path:
        return entity_id

    collection = out.entities.setdefault(entity_type, {})
    record = dict(entity)
    path = path + (id(entity),)

    for field_name, rel in schema.relationships.items():
        value = record.get(field_name)
        if value is None:
            continue

        target_schema = get_schema(schemas, rel.target)

        if isinstance(rel, HasMany):
            if not isinstance(value, (list, tuple)):
                raise InvalidRelationshipError(entity_type, field_name, value, "a list")
            record[field_name] = [
                item if is_entity_id(item)
                else _visit(item, rel.target, target_schema, schemas, out, path)
                for item in value
            ]
        elif isinstance(rel, HasOne):
            if is_entity_id(value):
                continue
            if not isinstance(value, Mapping):
                raise InvalidRelationshipError(
                    entity_type, field_name, value, "a mapping or an id"
                )
            record[field_name] = _visit(
                value, rel.target, target_schema, schemas, out, path
            )

    collection[entity_id] = record
    return entity_id
