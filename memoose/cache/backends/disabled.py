"""
Memoose - Disabled Cache Provider

Provider that never stores anything. Every read misses, so memoized functions
always run; useful to switch caching off through configuration without
changing call sites.
"""

from typing import Any, Literal

from ..interface import TTL, CacheKey, CacheProvider, Pipeline


class DisabledPipeline(Pipeline):
    """Pipeline that records commands only to return the matching no-op results."""

    def __init__(self) -> None:
        self._results: list[Any] = []

    def get(self, key: CacheKey) -> "DisabledPipeline":
        self._results.append(None)
        return self

    def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> "DisabledPipeline":
        self._results.append("OK")
        return self

    def delete(self, key: CacheKey) -> "DisabledPipeline":
        self._results.append(0)
        return self

    def expire(self, key: CacheKey, ttl: TTL) -> "DisabledPipeline":
        self._results.append(0)
        return self

    async def execute(self) -> list[Any]:
        results, self._results = self._results, []
        return results


class DisabledCacheProvider(CacheProvider):
    """Cache provider that accepts writes and forgets them."""

    stores_as_obj = True

    def name(self) -> str:
        return "disabled"

    async def get(self, key: CacheKey) -> Any | None:
        return None

    async def mget(self, *keys: CacheKey) -> list[Any | None]:
        return [None] * len(keys)

    async def set(self, key: CacheKey, value: Any, ttl: TTL | None = None) -> Literal["OK"] | None:
        return "OK"

    async def mset(self, *pairs: tuple[CacheKey, Any]) -> Literal["OK"] | None:
        return "OK"

    async def delete(self, *keys: CacheKey) -> int:
        return 0

    async def expire(self, key: CacheKey, ttl: TTL) -> Literal[0, 1]:
        return 0

    def pipeline(self) -> DisabledPipeline:
        return DisabledPipeline()

    async def clear(self) -> int:
        return 0

    async def get_stats(self) -> dict[str, Any]:
        return {"backend": "disabled", "size": 0}
