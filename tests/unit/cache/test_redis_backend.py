"""
Memoose - Redis Cache Provider Tests

Test suite for the Redis cache provider.
Tests all interface methods, TTL handling, namespace isolation and pipelines.

Requires Redis server running on localhost:6379 (or TEST_REDIS_URL env var).
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from memoose.cache.backends.redis import RedisCacheProvider, RedisClusterCacheProvider

# Check if Redis is available
try:
    import socket

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(1)
    redis_available = sock.connect_ex(("localhost", 6379)) == 0
    sock.close()
except OSError:
    redis_available = False

pytestmark = pytest.mark.skipif(not redis_available, reason="Redis server not available")


class TestRedisCacheProvider:
    """Test suite for RedisCacheProvider."""

    @pytest.fixture
    async def cache(self, test_redis_url: str) -> AsyncGenerator[RedisCacheProvider, None]:
        """Create a fresh namespaced Redis provider for each test."""
        cache = RedisCacheProvider(
            redis_url=test_redis_url,
            namespace="test",
            max_connections=5,
            socket_timeout=2,
        )
        await cache.clear()
        yield cache
        await cache.clear()
        await cache.close()

    async def test_initialization(self, test_redis_url: str) -> None:
        """Test provider initialization with custom parameters."""
        cache = RedisCacheProvider(redis_url=test_redis_url, namespace="custom")

        assert cache.name() == "redis"
        assert cache.namespace == "custom"
        assert cache.stores_as_obj is False

        stats = await cache.get_stats()
        assert stats["backend"] == "redis"
        assert stats["namespace"] == "custom"
        assert stats["connected"] is True

        await cache.close()

    def test_requires_url(self) -> None:
        """Test that an empty URL is rejected."""
        with pytest.raises(ValueError):
            RedisCacheProvider(redis_url="")

    async def test_cluster_variant_name(self) -> None:
        """Test that the cluster variant reports its own name without connecting."""
        cache = RedisClusterCacheProvider(redis_url="redis://localhost:6379/0")
        assert cache.name() == "redis_cluster"
        await cache.close()

    async def test_set_and_get(self, cache: RedisCacheProvider) -> None:
        """Test basic set and get operations."""
        assert await cache.set("key1", "value1") == "OK"
        assert await cache.get("key1") == "value1"

        stats = await cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 0

    async def test_namespace_prefix_on_server(self, cache: RedisCacheProvider, redis_client: Redis) -> None:
        """Test that keys are stored under the namespace prefix."""
        await cache.set("{fn}:abc", "value")
        assert await redis_client.get("test:{fn}:abc") == "value"

    async def test_mget_and_mset(self, cache: RedisCacheProvider) -> None:
        """Test batch operations keep key order."""
        assert await cache.mset(("k1", "v1"), ("k3", "v3")) == "OK"
        assert await cache.mget("k3", "k2", "k1") == ["v3", None, "v1"]
        assert await cache.mget() == []

    async def test_delete_counts_removed_keys(self, cache: RedisCacheProvider) -> None:
        """Test that delete returns the number of removed keys."""
        await cache.set("key1", "value1")
        await cache.set("key2", "value2")

        assert await cache.delete("key1", "key2", "missing") == 2
        assert await cache.delete("key1") == 0

    async def test_ttl_expiration(self, cache: RedisCacheProvider) -> None:
        """Test that entries expire after TTL."""
        await cache.set("key1", "value1", ttl=1)
        assert await cache.get("key1") == "value1"

        await asyncio.sleep(2.0)
        assert await cache.get("key1") is None

    async def test_ttl_zero_no_expiry(self, cache: RedisCacheProvider, redis_client: Redis) -> None:
        """Test that TTL=0 stores without expiry."""
        await cache.set("key1", "value1", ttl=0)
        assert await redis_client.ttl("test:key1") == -1

    async def test_expire(self, cache: RedisCacheProvider) -> None:
        """Test that expire reports whether the key existed."""
        await cache.set("key1", "value1")

        assert await cache.expire("key1", 1) == 1
        assert await cache.expire("missing", 1) == 0

        await asyncio.sleep(2.0)
        assert await cache.get("key1") is None

    async def test_pipeline_results_in_queue_order(self, cache: RedisCacheProvider) -> None:
        """Test that pipelines return normalized results in queue order."""
        await cache.set("existing", "old")

        results = await (
            cache.pipeline()
            .get("existing")
            .set("new", "value", 60)
            .expire("missing", 30)
            .delete("existing")
            .execute()
        )

        assert results == ["old", "OK", 0, 1]
        assert await cache.get("new") == "value"

    async def test_clear_only_touches_namespace(self, cache: RedisCacheProvider, redis_client: Redis) -> None:
        """Test that clear() leaves keys outside the namespace alone."""
        await redis_client.set("other:key", "keep")
        for i in range(3):
            await cache.set(f"key{i}", f"value{i}")

        assert await cache.clear() == 3
        assert await redis_client.get("other:key") == "keep"

    async def test_errors_propagate(self) -> None:
        """Test that backend failures are raised, not swallowed."""
        cache = RedisCacheProvider(redis_url="redis://localhost:1/0", socket_timeout=1)

        with pytest.raises(RedisConnectionError):
            await cache.get("key1")

        await cache.close()
