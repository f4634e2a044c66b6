"""AggregateCache — serialized snapshots of hydrated aggregates.

The cache is a disposable, derivable copy of repository state. It never
acts as source of truth and can be emptied at any time.

- Keys are ``{namespace}:{field}:{value}`` (``clients:id:cli_...``,
  ``clients:client_id:web-app``).
- Values are JSON snapshots; :meth:`get` returns a fresh model per call,
  so callers never share mutable state with the cache.
- No negative entries, no expiry. Staleness is bounded solely by the
  eviction calls services make after committed writes.

Concurrency: one lock guards the map. Every eviction advances a
generation counter. A reader that hydrates on a miss takes the current
generation *before* reading the repository and passes it to :meth:`put`;
if any eviction happened in between, the put is discarded so a stale
snapshot cannot outlive the invalidation that should have removed it.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Generic, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from iamctl.domain.kinds import EntityKind

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class AggregateCache(Generic[M]):
    """Thread-safe snapshot cache for one aggregate model type."""

    def __init__(self, model: type[M], namespace: str, *, enabled: bool = True) -> None:
        self._model = model
        self._namespace = namespace
        self._enabled = enabled
        self._entries: dict[str, str] = {}
        self._generation = 0
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def generation(self) -> int:
        """Monotonic counter advanced by every eviction."""
        with self._lock:
            return self._generation

    def key(self, field: str, value: str) -> str:
        """Build a cache key, e.g. ``clients:id:cli_...``."""
        return f"{self._namespace}:{field}:{value}"

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    # ------------------------------------------------------------------
    # Read / populate
    # ------------------------------------------------------------------

    def get(self, key: str) -> M | None:
        """Return a fresh copy of the cached aggregate, or None on a miss."""
        if not self._enabled:
            return None
        with self._lock:
            raw = self._entries.get(key)
            if raw is None:
                self.misses += 1
                return None
            self.hits += 1
        return self._model.model_validate_json(raw)

    def put(self, keys: str | list[str], value: M, *, generation: int | None = None) -> bool:
        """Store *value* under one or more keys.

        When *generation* is given and an eviction has happened since it
        was read, nothing is stored. Returns True if the value was stored.
        """
        if not self._enabled:
            return False
        key_list = [keys] if isinstance(keys, str) else list(keys)
        snapshot = value.model_dump_json()
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Discarding stale cache put for %s", key_list)
                return False
            for key in key_list:
                self._entries[key] = snapshot
        return True

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def evict(self, *keys: str) -> int:
        """Remove the given keys. Returns how many entries were present."""
        with self._lock:
            self._generation += 1
            removed = 0
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed

    def evict_all(self) -> int:
        """Remove every entry in this cache."""
        with self._lock:
            self._generation += 1
            removed = len(self._entries)
            self._entries.clear()
        if removed:
            logger.debug("Evicted %d %s cache entries", removed, self._namespace)
        return removed

    def evict_all_embedding(self, kind: EntityKind, entity_id: str | None) -> int:
        """Remove every aggregate that may embed the given entity.

        Aggregates are keyed by their own identity, not by what they
        embed, so every entry is evicted.
        """
        logger.debug("Invalidating %s cache for %s %s", self._namespace, kind, entity_id)
        return self.evict_all()
