"""In-memory TTL cache with in-flight request coalescing. No Redis needed.

Note: Each uvicorn worker has its own cache instance. With --workers 2,
a key may be fetched twice (once per worker). Within a worker, concurrent
requests for the same key share a single upstream call.

Expiry is checked lazily on read; purge_expired() only reclaims memory.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable

from errors import InvalidKey

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    failures: int = 0


@dataclass
class _InFlight:
    task: asyncio.Task
    waiters: int = 0


class ResponseCache:
    """Async cache: at most one upstream fetch per key within its TTL window.

    Callers that arrive while a fetch for their key is running wait on that
    fetch and get the same value (or the same exception). Failed fetches are
    never stored. Must be used from a single event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, _InFlight] = {}
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(self, key: str, ttl: float, fetch_fn: Fetcher) -> Any:
        """Return the cached value for ``key`` or fetch it with ``fetch_fn``.

        Args:
            key: Non-empty cache key.
            ttl: Seconds the fetched value stays valid. 0 skips the cached entry
                and stores nothing, but still shares an in-flight fetch.
            fetch_fn: Zero-argument coroutine function producing the value.

        Raises:
            InvalidKey: If ``key`` is empty or not a string.
            ValueError: If ``ttl`` is negative.
            Whatever ``fetch_fn`` raises, unchanged and without retry.
        """
        if not isinstance(key, str) or not key:
            raise InvalidKey(key)
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")

        async with self._lock:
            entry = self._entries.get(key) if ttl > 0 else None
            if entry is not None:
                if not entry.is_expired(self._clock()):
                    self._stats.hits += 1
                    return entry.value
                del self._entries[key]

            # ttl == 0 still shares an in-flight fetch; it only skips the store.
            pending = self._in_flight.get(key)
            if pending is None:
                self._stats.misses += 1
                task = asyncio.create_task(self._fetch(key, ttl, fetch_fn), name=f"cache-fetch:{key}")
                pending = _InFlight(task=task)
                self._in_flight[key] = pending
            else:
                self._stats.coalesced += 1
            pending.waiters += 1

        return await self._wait(key, pending)

    async def _wait(self, key: str, pending: _InFlight) -> Any:
        # Shielded so one abandoned caller does not cancel the shared fetch.
        try:
            return await asyncio.shield(pending.task)
        finally:
            pending.waiters -= 1
            if pending.waiters == 0 and not pending.task.done():
                # Unmark before cancelling so a caller arriving now starts a new fetch.
                if self._in_flight.get(key) is pending:
                    del self._in_flight[key]
                pending.task.cancel()

    def _owns(self, key: str) -> bool:
        pending = self._in_flight.get(key)
        return pending is not None and pending.task is asyncio.current_task()

    async def _fetch(self, key: str, ttl: float, fetch_fn: Fetcher) -> Any:
        try:
            value = await fetch_fn()
        except Exception as e:
            self._stats.failures += 1
            logger.debug("Fetch for %s failed, nothing cached: %s", key, e)
            raise
        else:
            async with self._lock:
                # Invalidated while running: answer current waiters only.
                if ttl > 0 and self._owns(key):
                    self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)
            return value
        finally:
            if self._owns(key):
                del self._in_flight[key]

    async def invalidate(self, key: str) -> bool:
        """Drop the entry and in-flight marker for ``key``. Returns True if anything was removed."""
        async with self._lock:
            had_entry = self._entries.pop(key, None) is not None
            had_fetch = self._in_flight.pop(key, None) is not None
        if had_entry or had_fetch:
            logger.info("Invalidated cache key %s", key)
        return had_entry or had_fetch

    async def purge_expired(self) -> int:
        """Remove all expired entries and return how many were dropped."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    async def clear(self) -> None:
        """Clear all entries. In-flight fetches keep running for their waiters."""
        async with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        return {
            **asdict(self._stats),
            "entries": len(self._entries),
            "in_flight": len(self._in_flight),
        }


async def purge_periodically(cache: ResponseCache, interval: float) -> None:
    """Background loop: reclaim memory held by expired entries every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        removed = await cache.purge_expired()
        if removed:
            logger.info("Purged %d expired cache entries", removed)
