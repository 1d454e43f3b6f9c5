"""Port: where schema maps come from."""

from __future__ import annotations

from abc import ABC, abstractmethod

from graphnorm.domain.models import EntitySchema


class SchemaSourcePort(ABC):
    """Produce a complete ``type name → EntitySchema`` map."""

    @abstractmethod
    def load(self) -> dict[str, EntitySchema]: ...
