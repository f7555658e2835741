"""Per-session cache of computed diff views.

Entries are keyed by exactly what determines a view: where the repository
lives, which file, and which two revisions.  Entries expire after a TTL and
the least recently used entry is evicted when the cache is full.  One cache
is created per application lifespan and handed to the service; there is no
module-level instance.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from diffpane.core.content_fetcher import RepositoryCoordinates
from diffpane.core.diff_parser import RevisionPair

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class DiffCacheKey:
    coordinates: RepositoryCoordinates
    path: str
    revisions: RevisionPair


class DiffCache(Generic[V]):
    """TTL + LRU bounded in-memory cache."""

    def __init__(
        self,
        ttl_seconds: float = 900.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[DiffCacheKey, tuple[float, V]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: DiffCacheKey) -> bool:
        return self.get(key) is not None

    def get(self, key: DiffCacheKey) -> V | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache entry expired", extra={"path": key.path})
            return None
        self._entries.move_to_end(key)
        return value

    def put(self, key: DiffCacheKey, value: V) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache full, evicted entry", extra={"path": evicted.path})

    def invalidate(self, key: DiffCacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
