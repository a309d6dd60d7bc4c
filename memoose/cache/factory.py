"""
Memoose - Cache Provider Factory

Creates cache providers from configuration and keeps a registry of named
instances, so memoized functions across a process can share one provider.

Key points:
- Select the provider with MEMOOSE_CACHE_BACKEND=memory|redis|redis_cluster|disabled
  - Defaults to memory, or redis when REDIS_URL is set
  - Redis providers are imported lazily and need REDIS_URL
- All configuration is typed and validated via Pydantic models

Examples:
    from memoose.cache.factory import create_cache_provider, get_cache_provider

    # Uses env-configured backend (memory by default)
    provider = create_cache_provider()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from memoose.config import CacheBackend, CacheConfig
    cfg = CacheConfig(backend=CacheBackend.MEMORY, sweep_interval=0.5)
    mem_provider = create_cache_provider(cfg, name="test")
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.disabled import DisabledCacheProvider
from .backends.memory import MemoryCacheProvider
from .interface import CacheProvider
from .serialization import SerializationOptions

logger = logging.getLogger(__name__)

# Global provider registry
_provider_instances: dict[str, CacheProvider] = {}


def _create_memory_provider(config: CacheConfig, options: SerializationOptions | None) -> CacheProvider:
    """Internal helper to construct a memory provider."""
    return MemoryCacheProvider(
        serialization_options=options,
        stores_as_obj=config.stores_as_obj,
        sweep_interval=config.sweep_interval,
        namespace=config.namespace,
    )


def _create_redis_provider(config: CacheConfig, options: SerializationOptions | None) -> CacheProvider:
    """Internal helper to construct a Redis or Redis Cluster provider with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set for Redis cache providers",
            details={"env": "REDIS_URL", "backend": str(config.backend)},
        )

    # Lazy import to avoid hard dependency when the memory provider is used
    try:
        from .backends.redis import RedisCacheProvider, RedisClusterCacheProvider
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.0' or add to dependencies.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": str(config.backend)},
        ) from e

    provider_cls = RedisClusterCacheProvider if config.backend == CacheBackend.REDIS_CLUSTER else RedisCacheProvider
    return provider_cls(
        redis_url=config.redis_url,
        namespace=config.namespace,
        serialization_options=options,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_cache_provider(
    config: CacheConfig | None = None,
    name: str = "default",
    serialization_options: SerializationOptions | None = None,
) -> CacheProvider:
    """
    Create a cache provider based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Provider instance name (for multiple providers)
        serialization_options: Replacer/reviver hooks for text providers

    Returns:
        Configured cache provider, or the existing one registered under name

    Raises:
        ConfigurationError: If the configuration is invalid or a backend is unavailable
    """
    if name in _provider_instances:
        logger.debug("Returning existing cache provider: %s", name)
        return _provider_instances[name]

    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache provider '%s' with backend: %s",
        name,
        config.backend,
        extra={"provider_name": name, "backend": str(config.backend)},
    )

    try:
        if config.backend == CacheBackend.MEMORY:
            provider = _create_memory_provider(config, serialization_options)
        elif config.backend in (CacheBackend.REDIS, CacheBackend.REDIS_CLUSTER):
            provider = _create_redis_provider(config, serialization_options)
        elif config.backend == CacheBackend.DISABLED:
            provider = DisabledCacheProvider(serialization_options)
        else:
            raise ConfigurationError(
                f"Unknown cache backend: {config.backend}",
                details={
                    "backend": str(config.backend),
                    "supported": [b.value for b in CacheBackend],
                },
            )
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cache provider '%s': %s",
            name,
            e,
            extra={"provider_name": name, "backend": str(config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache provider '{name}': {e}",
            details={"provider_name": name, "backend": str(config.backend), "error": str(e)},
        ) from e

    _provider_instances[name] = provider
    return provider


def get_cache_provider(name: str = "default") -> CacheProvider:
    """
    Get a registered provider by name, creating it from global configuration if missing.
    """
    if name not in _provider_instances:
        logger.debug("Cache provider '%s' not found, creating new instance", name)
        return create_cache_provider(name=name)

    return _provider_instances[name]


def register_cache_provider(provider: CacheProvider, name: str = "default") -> CacheProvider:
    """
    Register an already constructed provider under name, replacing any previous one.

    Memoize instances created without an explicit provider use the one named "default".
    """
    previous = _provider_instances.get(name)
    if previous is not None and previous is not provider:
        logger.warning("Replacing registered cache provider '%s'", name)
    _provider_instances[name] = provider
    return provider


async def close_all_providers() -> None:
    """
    Close all registered providers and clear the registry.

    Should be called during graceful shutdown.
    """
    if not _provider_instances:
        logger.debug("No cache providers to close")
        return

    logger.info("Closing %d cache provider(s)...", len(_provider_instances))

    for name, provider in list(_provider_instances.items()):
        try:
            await provider.close()
            logger.info("Closed cache provider: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache provider '%s': %s",
                name,
                e,
                extra={"provider_name": name, "error": str(e)},
                exc_info=True,
            )

    _provider_instances.clear()


def reset_cache_factory() -> None:
    """
    Forget all registered providers without closing them.

    Warning: Only use this in testing contexts; use close_all_providers() for cleanup.
    """
    count = len(_provider_instances)
    _provider_instances.clear()
    logger.debug("Reset cache factory, cleared %d provider reference(s)", count)


def list_cache_providers() -> list[str]:
    """List all registered provider names."""
    return list(_provider_instances.keys())
