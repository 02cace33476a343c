"""
Async Utilities for Concurrent API Calls.

Provides:
- Ordered parallel execution with per-task error capture (TaskGroup)
- Optional concurrency bound via semaphore
- Timeout with fallback value
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Parallel Execution with TaskGroup (Python 3.11+)
# =============================================================================

async def gather_with_errors(
    *coros: Awaitable[T],
    return_exceptions: bool = False,
    max_concurrency: int | None = None,
) -> list[T | Exception]:
    """
    Execute coroutines in parallel using TaskGroup.

    Results are returned in the order the coroutines were passed in,
    regardless of completion order.

    Args:
        *coros: Coroutines to execute
        return_exceptions: If True, a failing coroutine yields its exception
            in its slot and does not disturb its siblings. If False, the
            first failure cancels the group and propagates.
        max_concurrency: Upper bound on coroutines running at once
            (None = unbounded)

    Returns:
        List of results (or exceptions if return_exceptions=True)

    Example:
        results = await gather_with_errors(
            fetch("a"),
            fetch("b"),
            return_exceptions=True,
        )
    """
    if max_concurrency is not None and max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
    results: list[Any] = [None] * len(coros)

    async def run(coro: Awaitable[T], index: int) -> None:
        if semaphore is None:
            results[index] = await coro
            return
        async with semaphore:
            results[index] = await coro

    async def safe_run(coro: Awaitable[T], index: int) -> None:
        try:
            await run(coro, index)
        except Exception as e:
            results[index] = e

    runner = safe_run if return_exceptions else run
    async with asyncio.TaskGroup() as tg:
        for i, coro in enumerate(coros):
            tg.create_task(runner(coro, i))

    return results


# =============================================================================
# Utility Functions
# =============================================================================

async def timeout_with_fallback(
    coro: Awaitable[T],
    timeout: float,
    fallback: T | Callable[[], T],
) -> T:
    """
    Execute coroutine with timeout and fallback.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds
        fallback: Value or callable to return on timeout

    Returns:
        Result or fallback value
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        logger.debug(f"Timed out after {timeout:g}s, using fallback")
        if callable(fallback):
            return fallback()
        return fallback
