"""Caching primitives for remote reference listings.

This module provides:
- TTLCache: LRU cache whose entries also expire after a fixed age
- InFlight: registry that collapses concurrent identical async calls

Both are keyed by plain strings and hold arbitrary values.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Final, Generic, TypeVar

from gitrevs.core.console import get_logger

logger = get_logger(__name__)

V = TypeVar("V")

MAX_CACHE_ENTRIES: Final[int] = 100
DEFAULT_TTL_SECONDS: Final[float] = 5 * 60.0


@dataclass
class _CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Bounded LRU cache with per-entry expiry.

    Entries are evicted when older than ``ttl`` seconds (checked on lookup)
    or when inserting past ``max_entries`` (least recently used first).

    Thread-safe for concurrent access.

    Usage:
        cache: TTLCache[ResolutionResult] = TTLCache(max_entries=100, ttl=300)
        hit = cache.get(repo)
        if hit is None:
            cache.put(repo, compute())
    """

    def __init__(
        self,
        max_entries: int = MAX_CACHE_ENTRIES,
        ttl: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum entries before LRU eviction (default: 100)
            ttl: Seconds an entry stays live after insertion (default: 300)
            clock: Monotonic time source, replaceable in tests

        Raises:
            ValueError: If either bound is not positive
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._entries: OrderedDict[str, _CacheEntry[V]] = OrderedDict()
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        """Return the live value for key, refreshing its recency, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def put(self, key: str, value: V) -> None:
        """Store value under key with a fresh expiry, evicting LRU entries if full.

        Args:
            key: Cache key (a repository identifier)
            value: Value to store
        """
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self._max_entries:
                self._evict_lru_unlocked()
            self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + self._ttl)

    def invalidate(self, key: str) -> None:
        """Remove entry for key, if present.

        Args:
            key: Key to invalidate
        """
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, float]:
        """Return cache statistics.

        Returns:
            Dict with 'entries', 'max_entries' and 'ttl' values
        """
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "ttl": self._ttl,
            }

    def _evict_lru_unlocked(self) -> None:
        """Remove least recently used entry. Must hold lock."""
        if self._entries:
            oldest, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s from cache", oldest)


class InFlight(Generic[V]):
    """Deduplicate concurrent async work by key.

    The first caller for a key starts the work as a task; later callers
    attach to the same task until it settles. The registry entry is removed
    once, when the task finishes, whatever the outcome. Waiters are shielded
    so one caller giving up does not cancel the shared work.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[V]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: str, factory: Callable[[], Awaitable[V]]) -> V:
        """Await the shared result for key, starting factory() if nothing is pending.

        Args:
            key: Identity of the work; equal keys share one task
            factory: Zero-argument callable returning the awaitable to run

        Returns:
            The task's result. Its exception is re-raised to every waiter.
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._settle(key, done))
        else:
            logger.debug("Joining in-flight %s", key)
        return await asyncio.shield(task)

    def _settle(self, key: str, task: asyncio.Task[V]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Retrieve the outcome so an unawaited failure is not reported as lost.
        if not task.cancelled():
            task.exception()


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "MAX_CACHE_ENTRIES",
    "InFlight",
    "TTLCache",
]
