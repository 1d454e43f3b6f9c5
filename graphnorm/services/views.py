"""Memoized read views over an ``EntityStore``.

A view caches its value together with the store version it was computed
for and recomputes only when the version has moved on.  Writes never
mutate a committed snapshot, so a cached value stays consistent with the
version it is tagged with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from graphnorm.services.store import EntityStore, StoreSnapshot

T = TypeVar("T")

_UNSET = object()


class DenormalizedView(Generic[T]):
    """Lazily computed, version-keyed value.  Call it to read."""

    def __init__(
        self,
        store: "EntityStore",
        compute: Callable[["StoreSnapshot"], T],
        *,
        label: str = "",
    ) -> None:
        self._store = store
        self._compute = compute
        self._label = label
        self._version = -1
        self._value: object = _UNSET
        self.computations = 0

    def __call__(self) -> T:
        version = self._store.version
        if self._value is _UNSET or version != self._version:
            self._value = self._compute(self._store.snapshot())
            self._version = version
            self.computations += 1
        return self._value  # type: ignore[return-value]

    @property
    def value(self) -> T:
        return self()

    @property
    def stale(self) -> bool:
        return self._value is _UNSET or self._version != self._store.version

    def __repr__(self) -> str:
        return f"DenormalizedView({self._label!r}, version={self._version})"
