"""
Memoose - Redis Cache Providers

Asynchronous Redis providers built on redis-py's asyncio client:
- Values are stored as text (callers serialize before set)
- Per-key TTL via SET ... EX and EXPIRE
- Optional namespace prefixing for shared databases
- Batch reads with MGET and batched writes with pipelines

RedisClusterCacheProvider exposes the same surface over a Redis Cluster. Keys
generated by the memoization engine carry a "{function}" hash tag, so all
entries of one memoized function live in a single slot.

Requires: redis>=5.0 with asyncio support

Example:
    provider = RedisCacheProvider(redis_url="redis://localhost:6379/0")
    await provider.set("greeting", '"hello"', ttl=60)
    value = await provider.get("greeting")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from ..interface import TTL, CacheKey, CacheProvider, Pipeline
from ..serialization import SerializationOptions

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4.2+)
    from redis.asyncio import Redis
    from redis.asyncio.cluster import RedisCluster
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


def _as_value(reply: Any) -> Any:
    return reply


def _as_ok(reply: Any) -> Literal["OK"] | None:
    return "OK" if reply else None


def _as_flag(reply: Any) -> Literal[0, 1]:
    return 1 if reply else 0


class RedisPipeline(Pipeline):
    """Adapter mapping the provider pipeline surface onto a redis-py pipeline."""

    def __init__(self, provider: RedisCacheProvider, pipe: Any):
        self._provider = provider
        self._pipe = pipe
        # One reply normalizer per queued command
        self._normalizers: list[Callable[[Any], Any]] = []

    def get(self, key: CacheKey) -> RedisPipeline:
        self._pipe.get(self._provider._make_key(key))
        self._normalizers.append(_as_value)
        return self

    def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> RedisPipeline:
        self._pipe.set(self._provider._make_key(key), value, ex=self._provider._ttl_seconds(ttl))
        self._normalizers.append(_as_ok)
        return self

    def delete(self, key: CacheKey) -> RedisPipeline:
        self._pipe.delete(self._provider._make_key(key))
        self._normalizers.append(int)
        return self

    def expire(self, key: CacheKey, ttl: TTL) -> RedisPipeline:
        self._pipe.expire(self._provider._make_key(key), int(ttl))
        self._normalizers.append(_as_flag)
        return self

    async def execute(self) -> list[Any]:
        normalizers, self._normalizers = self._normalizers, []
        try:
            results = await self._pipe.execute()
        except Exception as e:
            logger.error(
                f"Redis pipeline execution failed: {e}",
                extra={"namespace": self._provider.namespace, "error": str(e)},
                exc_info=True,
            )
            raise
        return [normalize(result) for normalize, result in zip(normalizers, results, strict=True)]


class RedisCacheProvider(CacheProvider):
    """
    Redis cache provider storing text values with TTL.

    Notes:
    - Keys are prefixed with the namespace when one is configured.
    - TTL is applied via Redis EX seconds (None or <= 0 -> no expiry).
    - Errors from Redis are logged and re-raised unchanged.
    """

    stores_as_obj = False

    def __init__(
        self,
        redis_url: str,
        namespace: str = "",
        serialization_options: SerializationOptions | None = None,
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize Redis cache provider.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Optional prefix for all keys
            serialization_options: Hooks used by callers that serialize values
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        super().__init__(serialization_options)
        self.redis_url = redis_url
        self.namespace = namespace.strip()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # Lazy connection; connects on first command
        self._client = self._create_client(redis_url, max_connections, socket_timeout)

    def _create_client(self, redis_url: str, max_connections: int, socket_timeout: int) -> Any:
        return Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    def name(self) -> str:
        return "redis"

    # ------------ Helpers ------------

    def _make_key(self, key: CacheKey) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}" if self.namespace else key

    @staticmethod
    def _ttl_seconds(ttl: TTL | None) -> int | None:
        """Normalize TTL: None or non-positive -> no expiry."""
        if ttl is None:
            return None
        ttl = int(ttl)
        return ttl if ttl > 0 else None

    def _count_reads(self, values: list[Any]) -> None:
        for value in values:
            if value is None:
                self._misses += 1
            else:
                self._hits += 1

    def _raw_pipeline(self) -> Any:
        return self._client.pipeline(transaction=False)

    async def _mget(self, ns_keys: list[str]) -> list[Any]:
        return await self._client.mget(ns_keys)

    async def _mset(self, mapping: dict[str, Any]) -> Any:
        return await self._client.mset(mapping)

    # ------------ Core Interface ------------

    async def get(self, key: CacheKey) -> Any | None:
        try:
            value = await self._client.get(self._make_key(key))
        except Exception as e:
            logger.error(
                f"Failed to get key '{key}' from Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise
        self._count_reads([value])
        return value

    async def mget(self, *keys: CacheKey) -> list[Any | None]:
        if not keys:
            return []
        try:
            values = await self._mget([self._make_key(k) for k in keys])
        except Exception as e:
            logger.error(
                f"Failed to get multiple keys from Redis: {e}",
                extra={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise
        values = list(values)
        self._count_reads(values)
        return values

    async def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> Literal["OK"] | None:
        try:
            res = await self._client.set(self._make_key(key), value, ex=self._ttl_seconds(ttl))
        except Exception as e:
            logger.error(
                f"Failed to set key '{key}' in Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "ttl": ttl, "error": str(e)},
                exc_info=True,
            )
            raise
        if not res:
            return None
        self._sets += 1
        return "OK"

    async def mset(self, *pairs: tuple[CacheKey, Any]) -> Literal["OK"] | None:
        if not pairs:
            return "OK"
        try:
            res = await self._mset({self._make_key(k): v for k, v in pairs})
        except Exception as e:
            logger.error(
                f"Failed to set multiple keys in Redis: {e}",
                extra={"key_count": len(pairs), "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise
        if not res:
            return None
        self._sets += len(pairs)
        return "OK"

    async def delete(self, *keys: CacheKey) -> int:
        if not keys:
            return 0
        try:
            deleted = int(await self._client.delete(*(self._make_key(k) for k in keys)))
        except Exception as e:
            logger.error(
                f"Failed to delete keys from Redis: {e}",
                extra={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise
        self._deletes += deleted
        return deleted

    async def expire(self, key: CacheKey, ttl: TTL) -> Literal[0, 1]:
        try:
            applied = await self._client.expire(self._make_key(key), int(ttl))
        except Exception as e:
            logger.error(
                f"Failed to set expiry of key '{key}' in Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "ttl": ttl, "error": str(e)},
                exc_info=True,
            )
            raise
        return 1 if applied else 0

    def pipeline(self) -> RedisPipeline:
        return RedisPipeline(self, self._raw_pipeline())

    async def clear(self) -> int:
        """
        Clear all entries under the namespace, or the whole database without one.

        Namespaced clears SCAN "<namespace>:*" and DEL in batches.
        """
        try:
            if not self.namespace:
                size = int(await self._client.dbsize())
                await self._client.flushdb()
                logger.info(f"Flushed Redis database ({size} keys)")
                return size

            pattern = f"{self.namespace}:*"
            total_deleted = 0
            batch: list[str] = []
            async for key in self._client.scan_iter(match=pattern, count=1000):
                batch.append(key)
                if len(batch) >= 1000:
                    total_deleted += int(await self._client.delete(*batch))
                    batch = []
            if batch:
                total_deleted += int(await self._client.delete(*batch))
        except Exception as e:
            logger.error(
                f"Failed to clear cache for namespace '{self.namespace}': {e}",
                extra={"namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise

        self._deletes += total_deleted
        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return total_deleted

    async def get_stats(self) -> dict[str, Any]:
        """Return provider counters and basic Redis connectivity info."""
        total_requests = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": self.name(),
            "namespace": self.namespace,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        try:
            stats["connected"] = bool(await self._client.ping())
        except Exception as e:
            logger.warning(f"Failed to ping Redis: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release its connection pool."""
        try:
            await self._client.aclose()
            logger.info(f"Closed {self.name()} cache provider")
        except Exception as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )


class RedisClusterCacheProvider(RedisCacheProvider):
    """
    Redis Cluster variant of RedisCacheProvider.

    Multi-key reads and writes use redis-py's non-atomic cluster helpers, which
    split commands by slot.
    """

    def _create_client(self, redis_url: str, max_connections: int, socket_timeout: int) -> Any:
        return RedisCluster.from_url(
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    def name(self) -> str:
        return "redis_cluster"

    def _raw_pipeline(self) -> Any:
        return self._client.pipeline()

    async def _mget(self, ns_keys: list[str]) -> list[Any]:
        return await self._client.mget_nonatomic(ns_keys)

    async def _mset(self, mapping: dict[str, Any]) -> Any:
        results = await self._client.mset_nonatomic(mapping)
        return all(results)

    async def clear(self) -> int:
        """Clear namespaced keys on every primary, or flush all primaries without a namespace."""
        if self.namespace:
            return await super().clear()

        try:
            size = int(await self._client.dbsize(target_nodes=RedisCluster.PRIMARIES))
            await self._client.flushdb(target_nodes=RedisCluster.PRIMARIES)
        except Exception as e:
            logger.error(f"Failed to flush Redis Cluster: {e}", extra={"error": str(e)}, exc_info=True)
            raise
        logger.info(f"Flushed Redis Cluster ({size} keys)")
        return size
