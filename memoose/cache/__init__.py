"""
Memoose - Cache Module

Pluggable cache providers consumed by the memoization engine.

- interface.py: Abstract CacheProvider and Pipeline contracts
- serialization.py: JSON marshalling with replacer/reviver hooks
- factory.py: Named provider registry built from configuration
- backends/: Provider implementations (memory, disabled; redis loaded lazily)

Usage:
    from memoose.cache import create_cache_provider

    provider = create_cache_provider()
    await provider.set("key", '"value"', ttl=60)
    value = await provider.get("key")
"""

from .backends import DisabledCacheProvider, MemoryCacheProvider
from .factory import (
    close_all_providers,
    create_cache_provider,
    get_cache_provider,
    list_cache_providers,
    register_cache_provider,
    reset_cache_factory,
)
from .interface import TTL, CacheKey, CacheProvider, Pipeline
from .serialization import SerializationOptions, TDeserializer, TSerializer

__all__ = [
    # Factory functions
    "create_cache_provider",
    "get_cache_provider",
    "register_cache_provider",
    "close_all_providers",
    "list_cache_providers",
    "reset_cache_factory",
    # Interface
    "CacheProvider",
    "Pipeline",
    "CacheKey",
    "TTL",
    # Serialization
    "SerializationOptions",
    "TSerializer",
    "TDeserializer",
    # Providers
    "MemoryCacheProvider",
    "DisabledCacheProvider",
]
