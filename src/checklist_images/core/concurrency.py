"""Bounded-concurrency execution of async jobs."""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from .exceptions import ConfigurationError

T = TypeVar("T")
R = TypeVar("R")


async def run_with_concurrency(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T, int], Awaitable[R]],
) -> List[R]:
    """
    Run ``worker(item, index)`` for every item with at most ``limit`` in flight.

    Each of the ``min(limit, len(items))`` runners keeps claiming the next
    unclaimed index until none remain. Results are written to the slot of
    their index, so the returned list matches the input order.

    The first failing worker cancels the remaining runners and its exception
    propagates unchanged.

    Raises:
        ConfigurationError: If ``limit`` is lower than 1.
    """
    if limit < 1:
        raise ConfigurationError(f"Concurrency limit must be at least 1, got {limit}")

    total = len(items)
    results: List[Optional[R]] = [None] * total
    next_index = 0

    async def runner() -> None:
        nonlocal next_index
        while next_index < total:
            index = next_index
            next_index += 1
            results[index] = await worker(items[index], index)

    runners = [asyncio.ensure_future(runner()) for _ in range(min(limit, total))]
    try:
        await asyncio.gather(*runners)
    except BaseException:
        for task in runners:
            task.cancel()
        raise
    return results  # type: ignore[return-value]
