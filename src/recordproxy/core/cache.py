"""
In-process record cache keyed by record identity.

Manifesto:
    Reading a record from the local store costs a round-trip through the
    storage thread. The proxy already holds every payload it wrote or read,
    so it keeps them in a plain mapping and answers point reads from it.

    - **Best effort:** The store stays authoritative; the cache only saves
      round-trips
    - **Raw payloads:** Values are plain dicts, never Record instances, so
      they can be copied before a Record takes ownership of them
    - **Owned:** One cache per proxy, no module-level state

Architecture:
    ::

        RecordCache
            get(record_id) → payload | None
            set(record_id, payload)
            delete(record_id)
            exists(record_id) → bool
            clear()
            size() → int

Examples:
    >>> from recordproxy.core.cache import RecordCache
    >>> cache = RecordCache()
    >>> cache.set(1, {"id": 1, "query": "Ext JS"})
    >>> cache.get(1)
    {'id': 1, 'query': 'Ext JS'}
    >>> cache.exists(2)
    False

Performance:
    - O(1) get/set/delete
    - No eviction: the cache holds every record the proxy wrote or
      point-read, so a write is always visible to the next point read

Guardrails:
    ❌ DON'T: Hand out cached payloads to Records directly
    ✅ DO: Copy first (see ``LocalStoreProxy.get_record``)
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any


class RecordCache:
    """Mapping from record identity to last-known raw payload.

    Unbounded: every written or point-read record stays cached until it is
    deleted or the cache is cleared.

    Example:
        cache = RecordCache()
        cache.set(42, {"id": 42, "text": "hello"})
        payload = cache.get(42)
    """

    def __init__(self) -> None:
        self._store: dict[Hashable, dict[str, Any]] = {}

    def get(self, record_id: Hashable) -> dict[str, Any] | None:
        """Return the cached payload for ``record_id`` or ``None``."""
        return self._store.get(record_id)

    def set(self, record_id: Hashable, payload: dict[str, Any]) -> None:
        """Store or refresh the payload for ``record_id``."""
        self._store[record_id] = payload

    def delete(self, record_id: Hashable) -> None:
        """Remove an entry. No-op if it does not exist."""
        self._store.pop(record_id, None)

    def exists(self, record_id: Hashable) -> bool:
        """Check whether ``record_id`` is cached."""
        return record_id in self._store

    def clear(self) -> None:
        """Remove all entries."""
        self._store.clear()

    def size(self) -> int:
        """Return current number of cached entries."""
        return len(self._store)

    def ids(self) -> Iterator[Hashable]:
        """Iterate cached identities in insertion order."""
        return iter(list(self._store))


__all__ = ["RecordCache"]
