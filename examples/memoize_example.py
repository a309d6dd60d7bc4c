"""
Memoization Usage Example

Demonstrates how to memoize functions with Memoose.

This example shows:
- Memoizing a function with the env-configured default provider
- Cache hits, demoize and refresh
- Batched lookups with multi_call and a multi_exec override
- Switching to Redis by setting REDIS_URL
"""

import asyncio
import logging

from memoose import Memoize, MemoizeConfig, close_all_providers, get_cache_provider, memoize
from memoose.logging_setup import configure_logging

configure_logging()
logger = logging.getLogger(__name__)


def square_of(param: int) -> int:
    logger.info(f"Computing square of {param}")
    return param**2


cached_square_of = Memoize(square_of, 300)


@memoize(ttl=60, args_order_vain=True)
async def total(*values: int) -> int:
    logger.info(f"Computing total of {values}")
    await asyncio.sleep(0.1)
    return sum(values)


async def fetch_prices(*arg_tuples: tuple[str, ...]) -> list[float]:
    """One round trip for a whole batch of SKUs."""
    logger.info(f"Fetching {len(arg_tuples)} price(s) in one batch")
    return [round(len(sku) * 1.25, 2) for (sku,) in arg_tuples]


async def price_of(sku: str) -> float:
    return (await fetch_prices((sku,)))[0]


cached_price_of = Memoize(price_of, 120, MemoizeConfig(multi_exec_override=fetch_prices))


async def example_call() -> None:
    """Example: call() computes once per argument list."""
    logger.info("=" * 60)
    logger.info("Example 1: Memoized calls")
    logger.info("=" * 60)

    for n in (10, 20, 10):
        logger.info(f"Square of {n} is {await cached_square_of.call(n)}")

    await cached_square_of.demoize(10)
    logger.info(f"After demoize, square of 10 is {await cached_square_of.call(10)}")


async def example_order_vain() -> None:
    """Example: argument order does not matter for total()."""
    logger.info("\n" + "=" * 60)
    logger.info("Example 2: Order-insensitive keys")
    logger.info("=" * 60)

    logger.info(f"total(1, 2, 3) = {await total(1, 2, 3)}")
    logger.info(f"total(3, 2, 1) = {await total(3, 2, 1)}")


async def example_multi_call() -> None:
    """Example: multi_call() batches misses through the override."""
    logger.info("\n" + "=" * 60)
    logger.info("Example 3: Batched lookups")
    logger.info("=" * 60)

    await cached_price_of.call("apple")
    prices = await cached_price_of.multi_call(["apple"], ["banana"], ["cherry"])
    logger.info(f"Prices: {prices}")


async def main() -> None:
    provider = get_cache_provider()
    logger.info(f"Using cache provider: {provider.name()}")

    try:
        await example_call()
        await example_order_vain()
        await example_multi_call()
        logger.info(f"Stats: {await provider.get_stats()}")
    finally:
        await close_all_providers()


if __name__ == "__main__":
    asyncio.run(main())
