#!/usr/bin/env python3
"""Resilience helpers for provider calls.

This module provides the small set of async patterns the LLM service
relies on:
    - Bounded execution with a timeout
    - Concurrent fan-out that separates results from errors

Example:
    # Probe every provider at once, each bounded to two seconds
    results, errors = await gather_with_errors(
        *(with_timeout(p.health_check, 2.0) for p in providers)
    )
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================
# Timeouts
# ============================================

async def with_timeout(
    func: Callable[..., Awaitable[T]],
    timeout_seconds: float,
    *args,
    default: Optional[T] = None,
    raise_on_timeout: bool = True,
    **kwargs,
) -> Optional[T]:
    """Execute async function with timeout.

    Args:
        func: Async function to execute
        timeout_seconds: Maximum execution time in seconds
        *args: Arguments for func
        default: Value to return on timeout (if raise_on_timeout=False)
        raise_on_timeout: Whether to raise TimeoutError on timeout
        **kwargs: Keyword arguments for func

    Returns:
        Result from func, or default on timeout

    Raises:
        asyncio.TimeoutError: If timeout occurs and raise_on_timeout=True
    """
    try:
        return await asyncio.wait_for(
            func(*args, **kwargs),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        if raise_on_timeout:
            raise
        logger.warning(f"{getattr(func, '__qualname__', func)} timed out after {timeout_seconds}s")
        return default


# ============================================
# Concurrent Processing
# ============================================

async def gather_with_errors(
    *coros_or_futures,
    max_concurrent: Optional[int] = None,
) -> tuple[list[Any], list[Exception]]:
    """Execute coroutines concurrently, separating results from errors.

    Args:
        *coros_or_futures: Coroutines or futures to execute
        max_concurrent: Optional limit on concurrent execution

    Returns:
        Tuple of (successful_results, exceptions)
    """
    if max_concurrent:
        semaphore = asyncio.Semaphore(max_concurrent)

        async def bounded(coro):
            async with semaphore:
                return await coro

        coros_or_futures = tuple(bounded(c) for c in coros_or_futures)

    outcomes = await asyncio.gather(*coros_or_futures, return_exceptions=True)

    results = []
    errors = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            errors.append(outcome)
        else:
            results.append(outcome)

    return results, errors


async def gather_ordered(
    *coros_or_futures,
) -> list[Any]:
    """Execute coroutines concurrently and keep outcomes in input order.

    Exceptions are returned in place of results, so callers can pair each
    outcome with the item that produced it.
    """
    return list(await asyncio.gather(*coros_or_futures, return_exceptions=True))
