#!/usr/bin/env python3
"""Tests for resilience helpers.

Tests cover:
    - Timeout handling (raise vs default)
    - Concurrent execution that separates results from errors
    - Ordered gathering with exceptions kept in place
"""
import asyncio
import time

import pytest

from src.advisor.core.resilience import gather_ordered, gather_with_errors, with_timeout


# ============================================
# Timeout Tests
# ============================================

class TestWithTimeout:
    """Test bounded execution."""

    @pytest.mark.asyncio
    async def test_returns_result_within_timeout(self):
        """Fast functions return their result."""
        async def fast(value):
            return value * 2

        assert await with_timeout(fast, 1.0, 21) == 42

    @pytest.mark.asyncio
    async def test_raises_on_timeout_by_default(self):
        """Slow functions raise TimeoutError."""
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(asyncio.TimeoutError):
            await with_timeout(slow, 0.01)

    @pytest.mark.asyncio
    async def test_returns_default_when_not_raising(self):
        """Timeout returns the default when raise_on_timeout is False."""
        async def slow():
            await asyncio.sleep(1)
            return "late"

        result = await with_timeout(slow, 0.01, default="default", raise_on_timeout=False)
        assert result == "default"

    @pytest.mark.asyncio
    async def test_passes_kwargs(self):
        """Keyword arguments reach the wrapped function."""
        async def greet(name, punctuation="."):
            return f"hi {name}{punctuation}"

        assert await with_timeout(greet, 1.0, "ada", punctuation="!") == "hi ada!"


# ============================================
# Concurrent Execution Tests
# ============================================

class TestGatherWithErrors:
    """Test concurrent execution with error separation."""

    @pytest.mark.asyncio
    async def test_separates_results_and_errors(self):
        """Results and exceptions are returned in separate lists."""
        async def ok(v):
            return v

        async def fail():
            raise ValueError("boom")

        results, errors = await gather_with_errors(ok(1), fail(), ok(2))

        assert sorted(results) == [1, 2]
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)

    @pytest.mark.asyncio
    async def test_max_concurrent_limits_parallelism(self):
        """At most max_concurrent coroutines run at once."""
        running = 0
        peak = 0

        async def task():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return True

        results, errors = await gather_with_errors(*(task() for _ in range(6)), max_concurrent=2)

        assert len(results) == 6
        assert errors == []
        assert peak <= 2


class TestGatherOrdered:
    """Test ordered gathering."""

    @pytest.mark.asyncio
    async def test_keeps_input_order_with_exceptions(self):
        """Exceptions stay at the position of the failing coroutine."""
        async def delayed(v, delay):
            await asyncio.sleep(delay)
            return v

        async def fail():
            raise RuntimeError("down")

        outcomes = await gather_ordered(delayed("a", 0.02), fail(), delayed("c", 0))

        assert outcomes[0] == "a"
        assert isinstance(outcomes[1], RuntimeError)
        assert outcomes[2] == "c"

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        """Total time is bounded by the slowest coroutine, not the sum."""
        async def sleeper():
            await asyncio.sleep(0.05)

        start = time.perf_counter()
        await gather_ordered(*(sleeper() for _ in range(5)))
        assert time.perf_counter() - start < 0.2
