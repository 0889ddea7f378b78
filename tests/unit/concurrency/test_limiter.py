"""
Unit tests for ConcurrencyLimiter.

Covers the concurrency bound, FIFO admission, timeouts and slot release.
"""

import asyncio

import pytest

from completion_core.concurrency.limiter import ConcurrencyLimiter
from completion_core.exceptions import ConfigurationError, InvocationTimeoutError


@pytest.mark.parametrize("concurrency", [0, -1])
def test_rejects_invalid_concurrency(concurrency):
    with pytest.raises(ConfigurationError):
        ConcurrencyLimiter(concurrency=concurrency)


def test_rejects_non_positive_timeout():
    with pytest.raises(ConfigurationError):
        ConcurrencyLimiter(timeout=0)


@pytest.mark.asyncio
async def test_never_exceeds_concurrency():
    limiter = ConcurrencyLimiter(concurrency=2)
    running = 0
    peak = 0

    async def operation():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return "ok"

    results = await asyncio.gather(*(limiter.submit(operation) for _ in range(6)))

    assert results == ["ok"] * 6
    assert peak == 2
    assert limiter.in_flight == 0
    assert limiter.pending == 0


@pytest.mark.asyncio
async def test_unbounded_runs_everything_at_once():
    limiter = ConcurrencyLimiter()
    running = 0
    peak = 0

    async def operation():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await asyncio.gather(*(limiter.submit(operation) for _ in range(5)))

    assert peak == 5


@pytest.mark.asyncio
async def test_admission_is_fifo():
    limiter = ConcurrencyLimiter(concurrency=1)
    started = []

    def make_operation(i):
        async def operation():
            started.append(i)
            await asyncio.sleep(0)
            return i
        return operation

    results = await asyncio.gather(*(limiter.submit(make_operation(i)) for i in range(5)))

    assert started == [0, 1, 2, 3, 4]
    assert results == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_timeout_raises_and_frees_slot():
    limiter = ConcurrencyLimiter(concurrency=1, timeout=0.05)

    async def slow():
        await asyncio.sleep(1)

    async def fast():
        return "fast"

    with pytest.raises(InvocationTimeoutError):
        await limiter.submit(slow)

    assert await limiter.submit(fast) == "fast"
    assert limiter.in_flight == 0


@pytest.mark.asyncio
async def test_per_call_timeout_overrides_default():
    limiter = ConcurrencyLimiter(timeout=10)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(InvocationTimeoutError):
        await limiter.submit(slow, timeout=0.01)


@pytest.mark.asyncio
async def test_operation_errors_propagate_unchanged():
    limiter = ConcurrencyLimiter(concurrency=1)
    error = ValueError("boom")

    async def failing():
        raise error

    with pytest.raises(ValueError) as exc_info:
        await limiter.submit(failing)

    assert exc_info.value is error
    assert limiter.in_flight == 0


@pytest.mark.asyncio
async def test_timeout_error_from_operation_is_not_rewrapped():
    limiter = ConcurrencyLimiter(timeout=10)

    async def raises_timeout():
        raise TimeoutError("upstream")

    with pytest.raises(TimeoutError) as exc_info:
        await limiter.submit(raises_timeout)

    assert not isinstance(exc_info.value, InvocationTimeoutError)
