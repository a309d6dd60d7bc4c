"""
Memoose - Memoization Engine

- engine.py: Memoize wrapper and memoize decorator
- keys.py: Cache key derivation
- config.py: MemoizeConfig options model
- results.py: Cached value/failure envelope
"""

from .config import MemoizeConfig
from .engine import Memoize, memoize
from .keys import UNDEFINED, CacheKeyGenerator, FingerprintMode
from .results import CachedItem

__all__ = [
    "Memoize",
    "memoize",
    "MemoizeConfig",
    "CacheKeyGenerator",
    "FingerprintMode",
    "UNDEFINED",
    "CachedItem",
]
