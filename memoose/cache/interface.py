"""
Memoose - Cache Provider Interface

Defines the abstract contract every cache provider implements. The memoization
engine talks to storage only through this surface, so providers can be swapped
(memory, Redis, Redis Cluster, disabled) without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from .serialization import SerializationOptions

CacheKey = str
TTL = int


class Pipeline(ABC):
    """
    Queued batch of provider commands.

    Each queueing method returns the pipeline itself so calls can be chained.
    execute() runs the queue and returns one result per queued command, in
    queue order, then empties the queue.
    """

    @abstractmethod
    def get(self, key: CacheKey) -> Pipeline:
        """Queue a get; its result is the stored value or None."""

    @abstractmethod
    def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> Pipeline:
        """Queue a set; its result is "OK"."""

    @abstractmethod
    def delete(self, key: CacheKey) -> Pipeline:
        """Queue a delete; its result is the number of removed keys."""

    @abstractmethod
    def expire(self, key: CacheKey, ttl: TTL) -> Pipeline:
        """Queue an expire; its result is 1 if applied, 0 if the key is absent."""

    @abstractmethod
    async def execute(self) -> list[Any]:
        """Run all queued commands and return their results in order."""


class CacheProvider(ABC):
    """
    Abstract base class for cache providers.

    Attributes:
        stores_as_obj: True if values are kept as Python objects, False if the
            provider needs them serialized to text first
        serialization_options: Hooks used by callers that serialize values for
            this provider

    TTL arguments are seconds. None or a non-positive TTL on set() means the
    entry never expires. Backend failures propagate to the caller.
    """

    stores_as_obj: bool = False

    def __init__(self, serialization_options: SerializationOptions | None = None):
        self._serialization_options = serialization_options or SerializationOptions()

    @property
    def serialization_options(self) -> SerializationOptions:
        return self._serialization_options

    @abstractmethod
    def name(self) -> str:
        """Short provider name used in logs and stats."""

    @abstractmethod
    async def get(self, key: CacheKey) -> Any | None:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key

        Returns:
            Stored value if found and not expired, None otherwise
        """

    @abstractmethod
    async def mget(self, *keys: CacheKey) -> list[Any | None]:
        """
        Retrieve several values at once.

        Returns:
            One entry per key, in key order, None for misses
        """

    @abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> Literal["OK"] | None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store (text unless stores_as_obj)
            ttl: Time-to-live in seconds (None or <= 0 = no expiry)

        Returns:
            "OK" if stored
        """

    @abstractmethod
    async def mset(self, *pairs: tuple[CacheKey, Any]) -> Literal["OK"] | None:
        """Store several (key, value) pairs without expiry."""

    @abstractmethod
    async def delete(self, *keys: CacheKey) -> int:
        """
        Delete keys.

        Returns:
            Number of keys that existed and were removed
        """

    @abstractmethod
    async def expire(self, key: CacheKey, ttl: TTL) -> Literal[0, 1]:
        """
        Reset the TTL of an existing key, counted from now.

        Returns:
            1 if the TTL was applied, 0 if the key does not exist
        """

    @abstractmethod
    def pipeline(self) -> Pipeline:
        """Create a new command pipeline bound to this provider."""

    @abstractmethod
    async def clear(self) -> int:
        """
        Remove every entry owned by this provider.

        Returns:
            Number of removed keys
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get provider statistics.

        Returns:
            Dictionary with counters (hits, misses, sets, deletes, ...)
        """

    async def close(self) -> None:
        """
        Release resources held by the provider.

        Should be called during graceful shutdown.
        """
