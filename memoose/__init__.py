"""
Memoose - Async Memoization

Transparent, backend-agnostic memoization for async functions with TTL,
backed by pluggable cache providers (in-process memory, Redis, Redis Cluster).
"""

__version__ = "1.0.0"

from .cache import (
    CacheProvider,
    DisabledCacheProvider,
    MemoryCacheProvider,
    Pipeline,
    SerializationOptions,
    close_all_providers,
    create_cache_provider,
    get_cache_provider,
    register_cache_provider,
)
from .errors import (
    CachedRejectionError,
    CacheError,
    ConfigurationError,
    MemoizeError,
    MemooseError,
    MultiExecResultError,
    SerializationError,
)
from .memoize import (
    UNDEFINED,
    CachedItem,
    CacheKeyGenerator,
    FingerprintMode,
    Memoize,
    MemoizeConfig,
    memoize,
)

__all__ = [
    # Engine
    "Memoize",
    "memoize",
    "MemoizeConfig",
    "CacheKeyGenerator",
    "FingerprintMode",
    "UNDEFINED",
    "CachedItem",
    # Providers
    "CacheProvider",
    "Pipeline",
    "MemoryCacheProvider",
    "DisabledCacheProvider",
    "SerializationOptions",
    "create_cache_provider",
    "get_cache_provider",
    "register_cache_provider",
    "close_all_providers",
    # Errors
    "MemooseError",
    "ConfigurationError",
    "CacheError",
    "SerializationError",
    "MemoizeError",
    "MultiExecResultError",
    "CachedRejectionError",
]
