"""graphnorm: normalize nested entity graphs into per-type collections."""

from graphnorm.domain.errors import (
    ConfigError,
    EntityNotFoundError,
    GraphNormError,
    InvalidRelationshipError,
    MissingIdentifierError,
    NormalizationError,
    SchemaNotFoundError,
)
from graphnorm.domain.models import (
    EntitySchema,
    HasMany,
    HasOne,
    NormalizedData,
    OperationResult,
)
from graphnorm.services.denormalizer import denormalize
from graphnorm.services.normalizer import normalize
from graphnorm.services.schema import SchemaRegistry, create_schema, has_many, has_one
from graphnorm.services.store import EntityStore, StoreSnapshot
from graphnorm.services.views import DenormalizedView

__all__ = [
    "ConfigError",
    "EntityNotFoundError",
    "GraphNormError",
    "InvalidRelationshipError",
    "MissingIdentifierError",
    "NormalizationError",
    "SchemaNotFoundError",
    "EntitySchema",
    "HasMany",
    "HasOne",
    "NormalizedData",
    "OperationResult",
    "denormalize",
    "normalize",
    "SchemaRegistry",
    "create_schema",
    "has_many",
    "has_one",
    "EntityStore",
    "StoreSnapshot",
    "DenormalizedView",
]
