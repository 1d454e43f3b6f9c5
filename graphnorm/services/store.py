"""Entity store: owns the flattened collections and every mutation on them.

Copy-on-write state.  Each write builds a new ``_State`` (new top-level
dict, new dict for every touched collection) and swaps it in with a
single reference assignment, so a snapshot handed out earlier never sees
a partial write.  Entity records are replaced, never edited in place.

The store is single-writer and synchronous: callers invoke operations
one after another from the owning context.  It is an ordinary object
constructed per application or test scope, not a module-level singleton.
"""

from __future__ import annotations

import copy
import logging
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Sequence

from graphnorm.domain.errors import EntityNotFoundError
from graphnorm.domain.models import (
    Entity,
    EntityId,
    EntityMap,
    NormalizedData,
    OperationResult,
    SchemaMap,
)
from graphnorm.ports.schema_source import SchemaSourcePort
from graphnorm.services.denormalizer import denormalize
from graphnorm.services.normalizer import normalize
from graphnorm.services.schema import SchemaRegistry
from graphnorm.services.views import DenormalizedView

log = logging.getLogger(__name__)

IDENTIFIER_CHANGE = "identifier_change"


# ── State ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _State:
    entities: dict[str, EntityMap]
    loading: dict[str, bool]
    version: int


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only, point-in-time view of the store.

    ``version`` advances on every write to the entity collections.
    Loading-flag transitions do not advance it, since no view depends on
    them.
    """

    entities: Mapping[str, Mapping[EntityId, Entity]]
    loading: Mapping[str, bool]
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": {t: dict(m) for t, m in self.entities.items()},
            "loading": dict(self.loading),
        }


Listener = Callable[[StoreSnapshot], None]


class EntityStore:
    """Holds normalized collections for every type in a schema map.

    Usage:
        store = EntityStore(schemas)
        store.add_normalized_data(posts, "posts")
        post = store.select_denormalized("posts", "post1")()
        store.update_entity("users", "user1", {"name": "Ada"})
    """

    def __init__(self, schemas: SchemaMap, *, guard_cycles: bool = True) -> None:
        self._schemas = SchemaRegistry(schemas)
        self._guard_cycles = guard_cycles
        self._state = _State(
            entities={t: {} for t in self._schemas},
            loading={t: False for t in self._schemas},
            version=0,
        )
        self._listeners: list[Listener] = []
        # Views live as long as a caller holds them.
        self._views: weakref.WeakValueDictionary[
            tuple[str, EntityId | None], DenormalizedView[Any]
        ] = weakref.WeakValueDictionary()

    @classmethod
    def from_source(cls, source: SchemaSourcePort, *, guard_cycles: bool = True) -> "EntityStore":
        return cls(source.load(), guard_cycles=guard_cycles)

    # ── properties ──

    @property
    def schemas(self) -> SchemaRegistry:
        return self._schemas

    @property
    def version(self) -> int:
        return self._state.version

    def snapshot(self) -> StoreSnapshot:
        state = self._state
        return StoreSnapshot(
            entities=MappingProxyType(
                {t: MappingProxyType(m) for t, m in state.entities.items()}
            ),
            loading=MappingProxyType(state.loading),
            version=state.version,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a fresh snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── reads ──

    def get_entity_by_id(self, entity_type: str, entity_id: EntityId) -> Entity | None:
        """Stored record, relationships left as ids.  ``None`` if absent."""
        record = self._state.entities.get(entity_type, {}).get(entity_id)
        return copy.deepcopy(record) if record is not None else None

    def get_entities(self, entity_type: str) -> list[Entity]:
        return [copy.deepcopy(e) for e in self._state.entities.get(entity_type, {}).values()]

    def get_ids(self, entity_type: str) -> list[EntityId]:
        return list(self._state.entities.get(entity_type, {}))

    def count(self, entity_type: str) -> int:
        return len(self._state.entities.get(entity_type, {}))

    def is_loading(self, entity_type: str) -> bool:
        return self._state.loading.get(entity_type, False)

    def any_loading(self) -> bool:
        return any(self._state.loading.values())

    def stats(self) -> dict[str, int]:
        return {t: len(m) for t, m in self._state.entities.items()}

    # ── denormalized views ──

    def get_denormalized_entity(
        self, entity_type: str, entity_id: EntityId
    ) -> DenormalizedView[Entity | None]:
        self._schemas.get_schema(entity_type)
        key = (entity_type, entity_id)
        view = self._views.get(key)
        if view is None:
            view = DenormalizedView(
                self,
                lambda snap: denormalize(
                    entity_id, entity_type, snap.entities, self._schemas,
                    guard_cycles=self._guard_cycles,
                ),
                label=f"{entity_type}/{entity_id}",
            )
            self._views[key] = view
        return view

    def get_denormalized_entities(self, entity_type: str) -> DenormalizedView[list[Entity]]:
        self._schemas.get_schema(entity_type)
        key = (entity_type, None)
        view = self._views.get(key)
        if view is None:
            view = DenormalizedView(
                self,
                lambda snap: denormalize(
                    list(snap.entities.get(entity_type, {})), entity_type,
                    snap.entities, self._schemas,
                    guard_cycles=self._guard_cycles,
                ),
                label=entity_type,
            )
            self._views[key] = view
        return view

    def select_denormalized(
        self, entity_type: str, entity_id: EntityId | None = None
    ) -> DenormalizedView[Any]:
        """Plural view without *entity_id*, singular view with it."""
        if entity_id is None:
            return self.get_denormalized_entities(entity_type)
        return self.get_denormalized_entity(entity_type, entity_id)

    # ── writes ──

    def add_normalized_data(
        self,
        data: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        entity_type: str,
    ) -> NormalizedData:
        """Normalize *data* and merge every resulting collection into the store.

        Existing ids are replaced wholesale by the newly normalized record.
        """
        self._schemas.get_schema(entity_type)
        with self._loading(entity_type):
            normalized = normalize(data, entity_type, self._schemas)
            self._merge(normalized.entities)
        log.info("Merged %s into store (version %d)", normalized.counts(), self.version)
        return normalized

    def add_entity(self, entity_type: str, entity: Mapping[str, Any]) -> EntityId:
        """Add one (possibly nested) entity.  Same path as a bulk load."""
        return self.add_normalized_data(entity, entity_type).result  # type: ignore[return-value]

    def set_all_entities(
        self,
        entity_type: str,
        data: Sequence[Mapping[str, Any]],
    ) -> NormalizedData:
        """Replace *entity_type*'s collection with *data*; nested types are merged."""
        self._schemas.get_schema(entity_type)
        with self._loading(entity_type):
            normalized = normalize(list(data), entity_type, self._schemas)
            self._merge(normalized.entities, replace={entity_type})
        log.info("Replaced %s collection with %d entities", entity_type, self.count(entity_type))
        return normalized

    def upsert_entity(
        self, entity_type: str, entity: Mapping[str, Any]
    ) -> OperationResult[Entity]:
        """Insert *entity*, or shallow-merge it onto the stored record if present."""
        self._schemas.get_schema(entity_type)
        with self._loading(entity_type):
            normalized = normalize(entity, entity_type, self._schemas)
            entity_id = normalized.result
            incoming = normalized.entities[entity_type]
            existing = self._state.entities.get(entity_type, {}).get(entity_id)
            if existing is not None:
                incoming[entity_id] = {**existing, **incoming[entity_id]}
            self._merge(normalized.entities)
        log.debug(
            "%s %s/%s", "Updated" if existing is not None else "Inserted",
            entity_type, entity_id,
        )
        return OperationResult.ok(copy.deepcopy(incoming[entity_id]))

    def update_entity(
        self,
        entity_type: str,
        entity_id: EntityId,
        changes: Mapping[str, Any],
    ) -> OperationResult[Entity]:
        """Shallow-merge *changes* onto a stored entity.

        A missing id is an expected condition and comes back as a failed
        result; nothing is raised and the collection is left untouched.
        """
        collection = self._state.entities.get(entity_type)
        if collection is None or entity_id not in collection:
            err = EntityNotFoundError(entity_type, entity_id)
            log.warning("Update refused: %s", err)
            return OperationResult.fail(str(err), code=EntityNotFoundError.code)

        schema = self._schemas.get(entity_type)
        if schema is not None and changes.get(schema.id_key, entity_id) != entity_id:
            msg = (
                f"Cannot change '{schema.id_key}' of {entity_type}/{entity_id} "
                f"to {changes[schema.id_key]!r}"
            )
            log.warning("Update refused: %s", msg)
            return OperationResult.fail(msg, code=IDENTIFIER_CHANGE)

        updated = {**collection[entity_id], **copy.deepcopy(dict(changes))}
        self._commit_collection(entity_type, {**collection, entity_id: updated})
        log.debug("Updated %s/%s fields %s", entity_type, entity_id, sorted(changes))
        return OperationResult.ok(copy.deepcopy(updated))

    def remove_entity(self, entity_type: str, entity_id: EntityId) -> bool:
        """Delete one entity.  Returns False (no-op) if it was not there.

        Does not cascade: references held by other entities are left
        dangling and simply drop out of denormalized views.
        """
        collection = self._state.entities.get(entity_type)
        if collection is None or entity_id not in collection:
            log.debug("Remove skipped, %s/%s not present", entity_type, entity_id)
            return False
        remaining = {k: v for k, v in collection.items() if k != entity_id}
        self._commit_collection(entity_type, remaining)
        log.debug("Removed %s/%s", entity_type, entity_id)
        return True

    def clear(self) -> None:
        """Empty every collection."""
        self._commit(
            entities={t: {} for t in self._state.entities},
            loading=self._state.loading,
            bump=True,
        )
        log.info("Store cleared")

    # ── internals ──

    @contextmanager
    def _loading(self, entity_type: str) -> Iterator[None]:
        try:
            self._set_loading(entity_type, True)
            yield
        finally:
            self._set_loading(entity_type, False)

    def _set_loading(self, entity_type: str, flag: bool) -> None:
        self._commit(
            entities=self._state.entities,
            loading={**self._state.loading, entity_type: flag},
            bump=False,
        )

    def _merge(
        self,
        incoming: Mapping[str, EntityMap],
        *,
        replace: set[str] | frozenset[str] = frozenset(),
    ) -> None:
        if not incoming and not replace:
            return
        entities = dict(self._state.entities)
        for entity_type in replace:
            entities[entity_type] = {}
        for entity_type, collection in incoming.items():
            entities[entity_type] = {
                **entities.get(entity_type, {}),
                **copy.deepcopy(dict(collection)),
            }
        self._commit(entities=entities, loading=self._state.loading, bump=True)

    def _commit_collection(self, entity_type: str, collection: EntityMap) -> None:
        self._commit(
            entities={**self._state.entities, entity_type: collection},
            loading=self._state.loading,
            bump=True,
        )

    def _commit(
        self,
        *,
        entities: dict[str, EntityMap],
        loading: dict[str, bool],
        bump: bool,
    ) -> None:
        version = self._state.version + 1 if bump else self._state.version
        self._state = _State(entities=entities, loading=loading, version=version)
        if self._listeners:
            snap = self.snapshot()
            for listener in list(self._listeners):
                listener(snap)
