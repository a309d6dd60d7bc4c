"""
Memoose - Cache Providers

Exports the always-available provider implementations.

Redis providers are lazy-loaded via factory.py (or imported from
memoose.cache.backends.redis) so the redis client stays optional.
"""

from .disabled import DisabledCacheProvider
from .memory import MemoryCacheProvider

__all__ = [
    "DisabledCacheProvider",
    "MemoryCacheProvider",
]
