"""
Bounded-concurrency fan-out for independent lookups.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Iterable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


async def gather_bounded(
    keys: Iterable[K],
    fn: Callable[[K], Awaitable[V]],
    limit: int,
) -> tuple[dict[K, V], dict[K, Exception]]:
    """Run fn(key) for every distinct key with at most `limit` calls in flight.

    Exceptions are captured per key instead of cancelling the batch.

    Returns:
        (results, errors), both keyed by input key and ordered like the input.
    """
    ordered = list(dict.fromkeys(keys))
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(key: K) -> tuple[K, V | None, Exception | None]:
        async with semaphore:
            try:
                return key, await fn(key), None
            except Exception as e:
                return key, None, e

    outcomes = await asyncio.gather(*(_run(k) for k in ordered))

    results: dict[K, V] = {}
    errors: dict[K, Exception] = {}
    for key, value, error in outcomes:
        if error is not None:
            errors[key] = error
        else:
            results[key] = value
    return results, errors
