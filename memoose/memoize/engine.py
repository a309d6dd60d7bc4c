"""
Memoose - Memoization Engine

Memoize wraps one function and one cache provider and decides, per operation,
whether to read, write, bypass or batch against the provider.

Failure policy:
- call() caches failures: a call that raised keeps raising the same failure
  until the entry expires or is demoized/updated
- multi_call() never caches failures: a batch that raised is recomputed on the
  next attempt, and nothing from the failed batch is written

The engine holds no cached state. Concurrent identical calls are not
coalesced; each one reads, computes and writes on its own.

Example:
    async def fetch_user(user_id: int) -> dict:
        ...

    cached_fetch_user = Memoize(fetch_user, ttl=300, config=MemoizeConfig(cache_provider=provider))
    user = await cached_fetch_user.call(42)
    users = await cached_fetch_user.multi_call([1], [2], [3])
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import math
from collections.abc import Callable
from typing import Any, Generic, Literal, TypeVar

from ..cache.factory import get_cache_provider
from ..cache.interface import CacheProvider
from ..cache.serialization import dumps, loads
from ..config import get_config
from ..errors import MultiExecResultError
from .config import MemoizeConfig
from .keys import CacheKeyGenerator
from .results import CachedItem

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _function_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or type(fn).__name__


def _whole_seconds(ttl: Any) -> int:
    # Fractions round up so a sub-second TTL never turns into "no expiry"
    return math.ceil(ttl)


def _as_args(arg_tuple: Any) -> tuple[Any, ...]:
    if isinstance(arg_tuple, (list, tuple)):
        return tuple(arg_tuple)
    return (arg_tuple,)


class Memoize(Generic[T]):
    """
    Memoized wrapper around a coroutine function (plain functions work too).

    Args:
        fn: Function to memoize
        ttl: Default time-to-live in seconds for every entry written (0 = no expiry,
            fractions round up);
            MEMOOSE_CACHE_TTL_SECONDS when omitted
        config: MemoizeConfig, or a dict of its fields

    Calling the instance is the same as call().
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        ttl: int | None = None,
        config: MemoizeConfig | dict[str, Any] | None = None,
    ):
        if not callable(fn):
            raise TypeError(f"Memoize expects a callable, got {type(fn).__name__}")
        if ttl is None:
            ttl = get_config().cache.ttl_seconds
        if ttl < 0:
            raise ValueError("ttl must be a non-negative number of seconds")

        if config is None:
            config = MemoizeConfig()
        elif isinstance(config, dict):
            config = MemoizeConfig(**config)

        self._fn = fn
        self.ttl = _whole_seconds(ttl)
        self.config = config
        self.function_name = config.name or _function_name(fn)
        self._keys = CacheKeyGenerator(self.function_name, config.args_order_vain, config.fingerprint_mode)
        self._provider = config.cache_provider
        # Metadata only; fn.__dict__ stays out of the engine's namespace
        functools.update_wrapper(self, fn, updated=())

    def __repr__(self) -> str:
        return f"Memoize({self.function_name!r}, ttl={self.ttl})"

    def __call__(self, *args: Any) -> Any:
        return self.call(*args)

    @property
    def cache_provider(self) -> CacheProvider:
        """Provider in use; resolved from the factory's "default" provider when none was configured."""
        if self._provider is None:
            self._provider = get_cache_provider()
        return self._provider

    def key_for(self, *args: Any) -> str:
        """Cache key for an argument list."""
        return self._keys.for_args(*args)

    # ------------ Helpers ------------

    async def _invoke(self, args: tuple[Any, ...]) -> T:
        result = self._fn(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _encode(self, item: CachedItem) -> Any:
        provider = self.cache_provider
        if provider.stores_as_obj:
            return item
        return dumps(item.to_payload(), provider.serialization_options)

    def _decode(self, raw: Any) -> CachedItem:
        if isinstance(raw, CachedItem):
            return raw
        provider = self.cache_provider
        payload = raw if isinstance(raw, dict) else loads(raw, provider.serialization_options)
        return CachedItem.from_payload(payload)

    @staticmethod
    def _unwrap(item: CachedItem) -> Any:
        if item.reject:
            # Drop the traceback of earlier raises so repeated hits don't grow it
            raise item.data.with_traceback(None)
        return item.data

    # ------------ Operations ------------

    async def call(self, *args: Any) -> T:
        """
        Return the cached result for args, computing and caching it on a miss.

        A cached failure is raised again. A failure on a miss is cached with the
        default TTL and then raised unchanged.
        """
        provider = self.cache_provider
        key = self._keys.for_args(*args)

        raw = await provider.get(key)
        if raw is not None:
            item = self._decode(raw)
            logger.debug(
                "Cache hit for %s",
                self.function_name,
                extra={"function": self.function_name, "key": key, "reject": item.reject},
            )
            return self._unwrap(item)

        logger.debug("Cache miss for %s", self.function_name, extra={"function": self.function_name, "key": key})
        try:
            value = await self._invoke(args)
        except Exception as exc:
            logger.info(
                "Caching failure of %s: %s",
                self.function_name,
                type(exc).__name__,
                extra={"function": self.function_name, "key": key, "ttl": self.ttl},
            )
            await provider.set(key, self._encode(CachedItem(exc, reject=True)), self.ttl)
            raise

        await provider.set(key, self._encode(CachedItem(value)), self.ttl)
        return value

    async def exec(self, *args: Any) -> T:
        """Run the function directly, without reading or writing the cache."""
        return await self._invoke(args)

    async def update(self, *args: Any) -> Literal["OK"] | None:
        """
        Overwrite the entry for all but the last argument with the last argument.

        Example:
            await cached.update(1, 2, 3, 999)  # call(1, 2, 3) now returns 999
        """
        if not args:
            raise TypeError("update() requires the value to store as its last argument")
        *key_args, value = args
        key = self._keys.for_args(*key_args)
        return await self.cache_provider.set(key, self._encode(CachedItem(value)), self.ttl)

    async def demoize(self, *args: Any) -> int:
        """Delete the entry for args. Returns the number of removed keys."""
        return await self.cache_provider.delete(self._keys.for_args(*args))

    async def refresh(self, *args: Any) -> T:
        """Recompute the result for args and store it, whatever was cached before."""
        value = await self._invoke(args)
        await self.cache_provider.set(self._keys.for_args(*args), self._encode(CachedItem(value)), self.ttl)
        return value

    async def set_exp(self, *args: Any) -> Literal[0, 1]:
        """
        Reset the TTL of the entry for all but the last argument to the last argument.

        Returns 1 if the TTL was applied and 0 if there is no such entry.
        """
        if not args:
            raise TypeError("set_exp() requires the TTL in seconds as its last argument")
        *key_args, ttl = args
        return await self.cache_provider.expire(self._keys.for_args(*key_args), _whole_seconds(ttl))

    async def multi_call(self, *arg_tuples: Any) -> list[T]:
        """
        Batched call(): one result per argument tuple, in input order.

        Hits come from a single mget. Misses are computed together through
        multi_exec() and written back with one pipeline. If any computation
        fails the whole batch raises and nothing is written.
        """
        if not arg_tuples:
            return []

        provider = self.cache_provider
        tuples = [_as_args(t) for t in arg_tuples]
        keys = [self._keys.for_args(*t) for t in tuples]

        raws = await provider.mget(*keys)
        results: list[Any] = [None] * len(tuples)
        missing: list[int] = []
        for index, raw in enumerate(raws):
            if raw is None:
                missing.append(index)
            else:
                results[index] = self._unwrap(self._decode(raw))

        logger.debug(
            "multi_call for %s: %d hit(s), %d miss(es)",
            self.function_name,
            len(tuples) - len(missing),
            len(missing),
            extra={"function": self.function_name},
        )
        if not missing:
            return results

        computed = await self.multi_exec(*(tuples[i] for i in missing))

        pipe = provider.pipeline()
        for index, value in zip(missing, computed, strict=True):
            results[index] = value
            pipe.set(keys[index], self._encode(CachedItem(value)), self.ttl)
        await pipe.execute()

        return results

    async def multi_exec(self, *arg_tuples: Any) -> list[T]:
        """
        Compute one result per argument tuple, in input order, without touching the cache.

        Uses the configured multi_exec_override when present, otherwise runs the
        function once per tuple concurrently.
        """
        tuples = [_as_args(t) for t in arg_tuples]
        if not tuples:
            return []

        override = self.config.multi_exec_override
        if override is None:
            return list(await asyncio.gather(*(self._invoke(t) for t in tuples)))

        results = override(*tuples)
        if inspect.isawaitable(results):
            results = await results
        results = list(results)
        if len(results) != len(tuples):
            raise MultiExecResultError(expected=len(tuples), received=len(results))
        return results


def memoize(
    ttl: int | None = None,
    config: MemoizeConfig | dict[str, Any] | None = None,
    **options: Any,
) -> Callable[[Callable[..., Any]], Memoize[Any]]:
    """
    Decorator form of Memoize.

    Example:
        @memoize(ttl=60, args_order_vain=True)
        async def total(*values: int) -> int:
            return sum(values)

        await total(1, 2, 3)          # same as total.call(1, 2, 3)
        await total.demoize(1, 2, 3)
    """
    if config is not None and options:
        raise TypeError("Pass either config or keyword options, not both")

    def decorator(fn: Callable[..., Any]) -> Memoize[Any]:
        return Memoize(fn, ttl, config if config is not None else MemoizeConfig(**options))

    return decorator
