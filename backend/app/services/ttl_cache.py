"""In-process TTL cache shared by the transit gateway.

Unlike a plain expiring store, expired entries are kept and reported as
stale so callers can fall back to them when an upstream refresh fails.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached value and the monotonic deadline after which it is stale."""

    value: Any
    expires_at: float


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """Result of a cache read.

    ``found`` is False for keys never written; ``is_stale`` is only ever
    True for a found entry past its deadline.
    """

    value: Any = None
    is_stale: bool = False
    found: bool = False


_MISS = CacheLookup()


class TTLCache:
    """
    Key/value store with per-entry TTL and explicit staleness reporting.

    Entries are never evicted; a write replaces the whole entry for a key.
    Consider adding a max-size or LRU policy if the key space stops being
    bounded by route/stop queries.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get(self, key: str) -> CacheLookup:
        """Return the entry for ``key`` flagged stale once its TTL elapsed."""
        async with self._lock:
            entry = self._store.get(key)
        if entry is None:
            return _MISS
        return CacheLookup(
            value=entry.value,
            is_stale=self._clock() > entry.expires_at,
            found=True,
        )

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key`` until ``now + ttl_seconds``."""
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        async with self._lock:
            self._store[key] = entry

    async def delete(self, key: str) -> None:
        """Delete a value from the store."""
        async with self._lock:
            self._store.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


__all__ = ["CacheEntry", "CacheLookup", "TTLCache"]
