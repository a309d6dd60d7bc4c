"""
Memoose - Memoization over Redis Integration Tests

Runs the engine end to end against a real Redis server.

Requires Redis server running on localhost:6379 (or TEST_REDIS_URL env var).
"""

import asyncio
from collections.abc import AsyncGenerator
from decimal import Decimal
from typing import Any

import pytest
from redis.asyncio import Redis

from memoose.cache import SerializationOptions
from memoose.cache.backends.redis import RedisCacheProvider
from memoose.memoize import Memoize, MemoizeConfig

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


class InventoryError(Exception):
    """Failure raised by the memoized lookup below."""


class TestMemoizeOverRedis:
    """End-to-end memoization against RedisCacheProvider."""

    @pytest.fixture
    async def provider(
        self, test_redis_url: str, decimal_serialization: SerializationOptions
    ) -> AsyncGenerator[RedisCacheProvider, None]:
        provider = RedisCacheProvider(
            redis_url=test_redis_url,
            namespace="memoize_test",
            serialization_options=decimal_serialization,
        )
        await provider.clear()
        yield provider
        await provider.clear()
        await provider.close()

    @pytest.fixture
    def stock(self, provider: RedisCacheProvider) -> tuple[Memoize[Any], list[tuple[Any, ...]]]:
        """Memoized stock lookup plus a log of the argument lists it actually ran with."""
        runs: list[tuple[Any, ...]] = []

        async def lookup(sku: str, warehouse: int) -> dict[str, Any]:
            runs.append((sku, warehouse))
            if sku == "missing":
                raise InventoryError(f"unknown sku {sku}")
            return {"sku": sku, "warehouse": warehouse, "price": Decimal("4.50")}

        return Memoize(lookup, 60, MemoizeConfig(cache_provider=provider, name="stock")), runs

    async def test_call_hits_after_first_run(self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]]) -> None:
        cached, runs = stock

        first = await cached.call("A-1", 3)
        second = await cached.call("A-1", 3)

        assert first == second
        assert second["price"] == Decimal("4.50")
        assert runs == [("A-1", 3)]

    async def test_entry_layout_and_ttl(
        self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]], redis_client: Redis
    ) -> None:
        cached, _ = stock

        await cached.call("A-1", 3)

        stored_key = f"memoize_test:{cached.key_for('A-1', 3)}"
        assert stored_key.startswith("memoize_test:{stock}:")
        assert await redis_client.get(stored_key) == (
            '{"data":{"sku":"A-1","warehouse":3,"price":"__DECIMAL__4.50"},"reject":false}'
        )
        assert 0 < await redis_client.ttl(stored_key) <= 60

    async def test_failure_cached(self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]]) -> None:
        cached, runs = stock

        for _ in range(2):
            with pytest.raises(InventoryError, match="unknown sku missing"):
                await cached.call("missing", 1)

        assert runs == [("missing", 1)]

    async def test_update_demoize_set_exp(self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]]) -> None:
        cached, runs = stock

        assert await cached.update("A-1", 3, {"sku": "A-1", "override": True}) == "OK"
        assert await cached.call("A-1", 3) == {"sku": "A-1", "override": True}

        assert await cached.set_exp("A-1", 3, 1) == 1
        await asyncio.sleep(2.0)
        assert (await cached.call("A-1", 3))["warehouse"] == 3

        assert await cached.demoize("A-1", 3) == 1
        assert await cached.demoize("A-1", 3) == 0
        assert runs == [("A-1", 3)]

    async def test_multi_call(self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]]) -> None:
        cached, runs = stock

        await cached.call("B-2", 1)
        results = await cached.multi_call(["A-1", 1], ["B-2", 1], ["C-3", 2])

        assert [r["sku"] for r in results] == ["A-1", "B-2", "C-3"]
        assert sorted(runs) == [("A-1", 1), ("B-2", 1), ("C-3", 2)]

        await cached.multi_call(["A-1", 1], ["C-3", 2])
        assert len(runs) == 3

    async def test_multi_call_failure_writes_nothing(
        self, stock: tuple[Memoize[Any], list[tuple[Any, ...]]], provider: RedisCacheProvider
    ) -> None:
        cached, _ = stock

        with pytest.raises(InventoryError):
            await cached.multi_call(["A-1", 1], ["missing", 1])

        assert await provider.mget(cached.key_for("A-1", 1), cached.key_for("missing", 1)) == [None, None]
