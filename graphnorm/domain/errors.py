"""Exception hierarchy for normalization, denormalization and configuration."""

from __future__ import annotations

from typing import Any


class GraphNormError(Exception):
    """Base exception for graphnorm."""
    pass


class NormalizationError(GraphNormError):
    """Raised when input data or schemas cannot be walked."""
    pass


class SchemaNotFoundError(NormalizationError):
    """Raised when an entity type is missing from the schema map."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"Schema not found for type: {entity_type}")


class MissingIdentifierError(NormalizationError):
    """Raised when an entity has no value at its schema's id key."""

    def __init__(self, entity_type: str, id_key: str):
        self.entity_type = entity_type
        self.id_key = id_key
        super().__init__(
            f"Entity ID not found using key '{id_key}' for type '{entity_type}'"
        )


class InvalidRelationshipError(NormalizationError):
    """Raised when a relationship field holds a value of the wrong shape."""

    def __init__(self, entity_type: str, field: str, value: Any, expected: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(
            f"Relationship '{field}' on type '{entity_type}' expects {expected}, "
            f"got {type(value).__name__}"
        )


class EntityNotFoundError(GraphNormError):
    """An update targeted an id absent from its collection.

    The store reports this through ``OperationResult`` rather than raising;
    the class exists so the message and error code live in one place.
    """

    code = "entity_not_found"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Entity with ID {entity_id} not found in collection {entity_type}"
        )


class ConfigError(GraphNormError):
    """Raised for unreadable or invalid configuration and schema files."""
    pass
