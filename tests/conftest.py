"""
Memoose - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import AsyncGenerator, Generator
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from memoose.cache import MemoryCacheProvider, SerializationOptions

# Set test environment
os.environ["MEMOOSE_ENVIRONMENT"] = "test"
os.environ["MEMOOSE_LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if a Redis server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


DECIMAL_PREFIX = "__DECIMAL__"


def _decimal_serializer(key: str, value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{DECIMAL_PREFIX}{value}"
    return value


def _decimal_deserializer(key: str, value: Any) -> Any:
    if isinstance(value, str) and value.startswith(DECIMAL_PREFIX):
        return Decimal(value[len(DECIMAL_PREFIX) :])
    return value


@pytest.fixture
def decimal_serialization() -> SerializationOptions:
    """Serializer/deserializer pair that carries Decimal values through JSON."""
    return SerializationOptions(serializer=_decimal_serializer, deserializer=_decimal_deserializer)


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_client(test_redis_url: str) -> AsyncGenerator[Redis, None]:
    """
    Create a raw Redis client for testing.

    Automatically skips tests if Redis is not available.
    Clears the test database before and after each test.
    """
    client: Redis = Redis.from_url(test_redis_url, decode_responses=True)

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available for testing: {e}")

    await client.flushdb()

    yield client

    try:
        await client.flushdb()
    finally:
        await client.aclose()


@pytest_asyncio.fixture
async def memory_provider(decimal_serialization: SerializationOptions) -> AsyncGenerator[MemoryCacheProvider, None]:
    """Text-mode memory provider with Decimal support and a fast sweep."""
    provider = MemoryCacheProvider(serialization_options=decimal_serialization, sweep_interval=0.2)
    yield provider
    await provider.close()


@pytest_asyncio.fixture
async def object_memory_provider() -> AsyncGenerator[MemoryCacheProvider, None]:
    """Memory provider that keeps Python objects as-is."""
    provider = MemoryCacheProvider(stores_as_obj=True, sweep_interval=0.2)
    yield provider
    await provider.close()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory provider."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("MEMOOSE_CACHE_BACKEND", "memory")
    monkeypatch.setenv("MEMOOSE_CACHE_TTL_SECONDS", "120")
    monkeypatch.setenv("MEMOOSE_CACHE_SWEEP_INTERVAL", "0.5")
    monkeypatch.setenv("MEMOOSE_CACHE_NAMESPACE", "test")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for the Redis provider."""
    if not is_redis_available():
        pytest.skip("Redis not available")
    monkeypatch.delenv("MEMOOSE_CACHE_BACKEND", raising=False)
    monkeypatch.setenv("REDIS_URL", test_redis_url)
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "2")
    monkeypatch.setenv("MEMOOSE_CACHE_NAMESPACE", "test")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "simple_none": None,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_factory_and_config() -> Generator[None, None, None]:
    """Reset the provider registry and config singleton after each test to prevent state leakage."""
    yield
    from memoose.cache.factory import reset_cache_factory
    from memoose.config import loader

    reset_cache_factory()
    loader._config_instance = None
