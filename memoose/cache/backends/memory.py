"""
Memoose - Memory Cache Provider

In-process cache provider with per-key TTL.

Expired entries are dropped lazily when read and by a background sweep task
that runs every `sweep_interval` seconds on the running event loop. The task is
started on first use, cancelled by close() and ends on its own once the
provider is garbage collected. Using the provider from another loop moves the
task to that loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
import weakref
from collections.abc import Callable
from typing import Any, Literal

from ..interface import TTL, CacheKey, CacheProvider, Pipeline
from ..serialization import SerializationOptions

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float | None):
        self.value = value
        self.expires_at = expires_at


async def _sweep_periodically(ref: weakref.ref[MemoryCacheProvider], interval: float) -> None:
    """Sweep until the provider is garbage collected; holds it only weakly between sweeps."""
    while True:
        await asyncio.sleep(interval)
        provider = ref()
        if provider is None:
            return
        await provider.sweep()
        del provider


class MemoryPipeline(Pipeline):
    """Pipeline that replays queued commands against a MemoryCacheProvider under its lock."""

    def __init__(self, provider: MemoryCacheProvider):
        self._provider = provider
        self._commands: list[Callable[[], Any]] = []

    def get(self, key: CacheKey) -> MemoryPipeline:
        self._commands.append(lambda: self._provider._get_entry_value(key))
        return self

    def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> MemoryPipeline:
        self._commands.append(lambda: self._provider._put(key, value, ttl))
        return self

    def delete(self, key: CacheKey) -> MemoryPipeline:
        self._commands.append(lambda: self._provider._remove(key))
        return self

    def expire(self, key: CacheKey, ttl: TTL) -> MemoryPipeline:
        self._commands.append(lambda: self._provider._touch(key, ttl))
        return self

    async def execute(self) -> list[Any]:
        commands, self._commands = self._commands, []
        self._provider._ensure_sweeper()
        async with self._provider._lock:
            return [command() for command in commands]


class MemoryCacheProvider(CacheProvider):
    """
    In-memory cache provider.

    Features:
    - Per-key TTL with lazy expiry on read
    - Periodic background sweep of expired entries
    - Optional object mode (stores_as_obj=True) that skips serialization
    - O(1) get/set/delete operations
    """

    def __init__(
        self,
        serialization_options: SerializationOptions | None = None,
        stores_as_obj: bool = False,
        sweep_interval: float = 1.0,
        namespace: str = "",
    ):
        """
        Initialize memory cache provider.

        Args:
            serialization_options: Hooks used by callers that serialize values
            stores_as_obj: Keep Python objects as-is instead of serialized text
            sweep_interval: Seconds between background sweeps of expired entries
            namespace: Optional key prefix
        """
        super().__init__(serialization_options)
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")

        self.stores_as_obj = stores_as_obj
        self.sweep_interval = sweep_interval
        self.namespace = namespace

        # Cache storage: key -> entry
        self._entries: dict[str, _Entry] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._expirations = 0

        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task[None] | None = None
        self._sweeper_loop: asyncio.AbstractEventLoop | None = None

    def name(self) -> str:
        return "memory"

    # ------------ Helpers ------------

    def _make_key(self, key: CacheKey) -> str:
        """Create namespaced cache key."""
        return f"{self.namespace}:{key}" if self.namespace else key

    @staticmethod
    def _expiry(ttl: TTL | None) -> float | None:
        if ttl is None or ttl <= 0:
            return None
        return time.time() + ttl

    @staticmethod
    def _is_expired(entry: _Entry, now: float | None = None) -> bool:
        if entry.expires_at is None:
            return False
        return (now if now is not None else time.time()) > entry.expires_at

    def _live_entry(self, key: CacheKey) -> _Entry | None:
        """Return the unexpired entry for key, dropping it if it has expired."""
        cache_key = self._make_key(key)
        entry = self._entries.get(cache_key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[cache_key]
            self._expirations += 1
            return None
        return entry

    def _get_entry_value(self, key: CacheKey) -> Any | None:
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def _store_value(self, key: CacheKey, value: Any, expires_at: float | None) -> Literal["OK"]:
        self._entries[self._make_key(key)] = _Entry(value, expires_at)
        self._sets += 1
        return "OK"

    def _put(self, key: CacheKey, value: Any, ttl: TTL | None) -> Literal["OK"]:
        return self._store_value(key, value, self._expiry(ttl))

    def _remove(self, key: CacheKey) -> int:
        if self._live_entry(key) is None:
            return 0
        del self._entries[self._make_key(key)]
        self._deletes += 1
        return 1

    def _touch(self, key: CacheKey, ttl: TTL) -> Literal[0, 1]:
        entry = self._live_entry(key)
        if entry is None:
            return 0
        if ttl <= 0:
            # Same as Redis: a non-positive TTL removes the key
            del self._entries[self._make_key(key)]
            self._deletes += 1
            return 1
        entry.expires_at = time.time() + ttl
        return 1

    # ------------ Background sweep ------------

    def _ensure_sweeper(self) -> None:
        """Start the sweep task on the running loop if it is not already running there."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        previous, previous_loop = self._sweeper, self._sweeper_loop
        if previous is not None and not previous.done():
            if previous_loop is loop:
                return
            # Task belongs to another loop; cancel it there
            if previous_loop is not None and not previous_loop.is_closed():
                previous_loop.call_soon_threadsafe(previous.cancel)

        self._sweeper_loop = loop
        self._sweeper = loop.create_task(_sweep_periodically(weakref.ref(self), self.sweep_interval))
        logger.debug(
            "Started memory cache sweeper",
            extra={"namespace": self.namespace, "interval": self.sweep_interval},
        )

    async def sweep(self) -> int:
        """
        Remove every expired entry now.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = time.time()
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)

        if expired:
            logger.debug(f"Swept {len(expired)} expired entries from memory cache")
        return len(expired)

    # ------------ Core Interface ------------

    async def get(self, key: CacheKey) -> Any | None:
        self._ensure_sweeper()
        async with self._lock:
            return self._get_entry_value(key)

    async def mget(self, *keys: CacheKey) -> list[Any | None]:
        self._ensure_sweeper()
        async with self._lock:
            return [self._get_entry_value(key) for key in keys]

    async def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> Literal["OK"] | None:
        self._ensure_sweeper()
        async with self._lock:
            return self._put(key, value, ttl)

    async def mset(self, *pairs: tuple[CacheKey, Any]) -> Literal["OK"] | None:
        self._ensure_sweeper()
        async with self._lock:
            for key, value in pairs:
                self._store_value(key, value, None)
            return "OK"

    async def delete(self, *keys: CacheKey) -> int:
        async with self._lock:
            return sum(self._remove(key) for key in keys)

    async def expire(self, key: CacheKey, ttl: TTL) -> Literal[0, 1]:
        async with self._lock:
            return self._touch(key, ttl)

    def pipeline(self) -> MemoryPipeline:
        return MemoryPipeline(self)

    async def clear(self) -> int:
        async with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {size} entries from memory cache")
        return size

    async def get_stats(self) -> dict[str, Any]:
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "expirations": self._expirations,
                "stores_as_obj": self.stores_as_obj,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Cancel the background sweep. Stored data stays readable."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None or sweeper.done():
            return

        sweeper.cancel()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._sweeper_loop:
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        logger.debug("Memory cache sweeper stopped", extra={"namespace": self.namespace})
