"""Reference cleanup: detach an entity from everything that points at it.

``EntityStore.remove_entity`` never cascades.  This service does the
follow-up work a caller would otherwise do by hand: scan every
relationship that targets the removed type, then issue one
``update_entity`` per referrer.
"""

from __future__ import annotations

import logging

from graphnorm.domain.models import EntityId, HasMany, Referrer
from graphnorm.services.store import EntityStore

log = logging.getLogger(__name__)


class ReferenceCleanupService:
    """Find and clear references to one entity across the store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def find_referrers(self, entity_type: str, entity_id: EntityId) -> list[Referrer]:
        snap = self._store.snapshot()
        found: list[Referrer] = []
        for owner, field_name, rel in self._store.schemas.relationships_to(entity_type):
            for owner_id, record in snap.entities.get(owner, {}).items():
                value = record.get(field_name)
                if value is None:
                    continue
                if isinstance(rel, HasMany):
                    hit = isinstance(value, (list, tuple)) and entity_id in value
                else:
                    hit = value == entity_id
                if hit:
                    found.append(Referrer(owner, owner_id, field_name, rel))
        return found

    def detach(self, entity_type: str, entity_id: EntityId) -> int:
        """Drop *entity_id* from every referrer.  Returns the number updated.

        ``HasMany`` lists keep their remaining order; ``HasOne`` fields are
        set to ``None``.
        """
        updated = 0
        for ref in self.find_referrers(entity_type, entity_id):
            record = self._store.get_entity_by_id(ref.entity_type, ref.entity_id)
            if record is None:
                continue
            if isinstance(ref.relationship, HasMany):
                new_value = [i for i in record[ref.field] if i != entity_id]
            else:
                new_value = None
            result = self._store.update_entity(
                ref.entity_type, ref.entity_id, {ref.field: new_value}
            )
            if result.success:
                updated += 1
            else:
                log.warning(
                    "Failed to detach %s/%s from %s/%s: %s",
                    entity_type, entity_id, ref.entity_type, ref.entity_id, result.error,
                )
        log.debug("Detached %s/%s from %d referrer(s)", entity_type, entity_id, updated)
        return updated

    def remove_cascading(self, entity_type: str, entity_id: EntityId) -> int:
        """Detach, then remove.  Returns the number of referrers updated."""
        updated = self.detach(entity_type, entity_id)
        self._store.remove_entity(entity_type, entity_id)
        return updated
