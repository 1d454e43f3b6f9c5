"""Schema source adapter: schemas declared in code."""

from __future__ import annotations

from typing import Mapping

from graphnorm.domain.models import EntitySchema
from graphnorm.ports.schema_source import SchemaSourcePort


class InMemorySchemaSource(SchemaSourcePort):
    """Wraps a schema map built with ``create_schema`` / ``has_one`` / ``has_many``."""

    def __init__(self, schemas: Mapping[str, EntitySchema]) -> None:
        self._schemas = dict(schemas)

    def load(self) -> dict[str, EntitySchema]:
        return dict(self._schemas)
