"""Bounded-concurrency helpers for source fan-out.

Two patterns are exposed:

1. **throttled_gather** -- a drop-in replacement for ``asyncio.gather``
   that wraps each awaitable in a semaphore acquire/release.  Results come
   back in input order regardless of completion order.

2. **gather_in_chunks** -- runs awaitable factories in fixed-size chunks,
   awaiting each chunk before starting the next.  Used for batch
   verification so a large batch never schedules every name at once.

The semaphore is always injected by the caller.  The coordinator owns one
process-wide semaphore sized by ``max_concurrent_source_calls``.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore used for concurrency control.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def gather_in_chunks(
    factories: list[Callable[[], Awaitable[_T]]],
    chunk_size: int,
) -> list[_T]:
    """Await *factories* chunk by chunk, preserving input order.

    Each factory is called only when its chunk starts, so coroutines for
    later chunks are never created early.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")

    results: list[_T] = []
    for start in range(0, len(factories), chunk_size):
        chunk = factories[start : start + chunk_size]
        results.extend(await asyncio.gather(*(factory() for factory in chunk)))
    return results
