"""
In-process cache tier.

A TTL map guarded by a mutex plus a background sweeper task that drops
stale entries regardless of hit pattern.
"""

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cached value and its creation time (clock seconds)"""
    key: str
    value: Any
    created_at: float


class LocalTTLCache:
    """
    Thread-safe TTL cache held in process memory.

    Entries expire ``ttl_seconds`` after they were written; expiry is checked
    on read and by ``sweep``. The map is bounded by ``max_entries`` and the
    oldest entries are evicted first.

    Attributes:
        ttl_seconds: Lifetime of an entry
        max_entries: Upper bound on stored entries
    """

    def __init__(
        self,
        ttl_seconds: float = 60,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now - entry.created_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        entry = CacheEntry(key=key, value=value, created_at=self._clock())
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self, max_age_seconds: float = 300) -> int:
        """
        Drop entries older than ``max_age_seconds``.

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - max_age_seconds
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.created_at <= cutoff]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class CacheSweeper:
    """Background task that periodically sweeps a LocalTTLCache"""

    def __init__(
        self,
        cache: LocalTTLCache,
        interval_seconds: float = 300,
        max_age_seconds: float = 300
    ):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Cache sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Cache sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = self.cache.sweep(self.max_age_seconds)
            if removed:
                logger.debug(f"Cache sweep removed {removed} stale entries")
