"""Schema source adapter: YAML schema files validated with pydantic.

File layout::

    schemas:
      users:
        id_key: username
      comments:
        relationships:
          author: {has_one: users}
      posts:
        relationships:
          author: {has_one: users}
          comments: {has_many: comments}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from graphnorm.domain.errors import ConfigError
from graphnorm.domain.models import EntitySchema, RelationshipConfig
from graphnorm.ports.schema_source import SchemaSourcePort
from graphnorm.services.schema import create_schema, has_many, has_one

log = logging.getLogger(__name__)


class RelationshipModel(BaseModel):
    """Exactly one of ``has_one`` / ``has_many``, naming the target type."""
    has_one: str | None = Field(None, description="Target type of a singular reference")
    has_many: str | None = Field(None, description="Target type of an ordered list of references")

    @model_validator(mode="after")
    def _exactly_one(self) -> "RelationshipModel":
        if (self.has_one is None) == (self.has_many is None):
            raise ValueError("declare exactly one of 'has_one' or 'has_many'")
        return self

    def to_config(self) -> RelationshipConfig:
        if self.has_one is not None:
            return has_one(self.has_one)
        return has_many(self.has_many)  # type: ignore[arg-type]


class EntitySchemaModel(BaseModel):
    id_key: str = Field("id", min_length=1)
    relationships: dict[str, RelationshipModel] = Field(default_factory=dict)

    def to_schema(self) -> EntitySchema:
        return create_schema(
            self.id_key,
            {name: rel.to_config() for name, rel in self.relationships.items()},
        )


class SchemaFileModel(BaseModel):
    schemas: dict[str, EntitySchemaModel]


def parse_schemas(raw: Any, *, origin: str = "<memory>") -> dict[str, EntitySchema]:
    """Validate an already-loaded YAML/JSON document into a schema map."""
    try:
        doc = SchemaFileModel.model_validate(raw or {})
    except ValidationError as exc:
        raise ConfigError(f"Invalid schema file {origin}: {exc}") from exc
    return {name: model.to_schema() for name, model in doc.schemas.items()}


class YamlSchemaSource(SchemaSourcePort):
    """Read schemas from a YAML file."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    def load(self) -> dict[str, EntitySchema]:
        if not self._path.exists():
            raise ConfigError(f"Schema file not found: {self._path}")
        with open(self._path, encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Cannot parse schema file {self._path}: {exc}") from exc
        schemas = parse_schemas(raw, origin=str(self._path))
        log.info("Loaded %d schema(s) from %s", len(schemas), self._path)
        return schemas
