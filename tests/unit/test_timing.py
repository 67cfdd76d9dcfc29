import time

import pytest

from uiharness.core.errors import TimeoutFailure
from uiharness.utils.timing import Stopwatch, measure, poll_until


@pytest.mark.asyncio
async def test_poll_until_returns_first_truthy_value():
    values = iter([None, 0, "", "found"])
    assert await poll_until(lambda: next(values), timeout_ms=500, interval_ms=1) == "found"


@pytest.mark.asyncio
async def test_poll_until_accepts_async_predicates():
    calls = []

    async def ready():
        calls.append(1)
        return len(calls) >= 2

    assert await poll_until(ready, timeout_ms=500, interval_ms=1) is True
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_poll_until_waits_full_budget_before_timing_out():
    calls = []
    started = time.monotonic()
    with pytest.raises(TimeoutFailure) as info:
        await poll_until(lambda: calls.append(1), timeout_ms=120, interval_ms=25, description="spinner gone")
    assert time.monotonic() - started >= 0.12
    assert info.value.timeout_ms == 120
    assert "spinner gone" in str(info.value)
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_poll_until_zero_budget_still_checks_once():
    calls = []
    with pytest.raises(TimeoutFailure):
        await poll_until(lambda: calls.append(1), timeout_ms=0)
    assert calls == [1]


@pytest.mark.asyncio
async def test_poll_until_propagates_predicate_errors():
    def broken():
        raise KeyError("x")

    with pytest.raises(KeyError):
        await poll_until(broken, timeout_ms=1000)


def test_stopwatch_elapsed():
    assert Stopwatch().elapsed_ms() == 0
    with Stopwatch() as sw:
        time.sleep(0.01)
    assert sw.elapsed_ms() >= 10


@pytest.mark.asyncio
async def test_measure_wraps_sync_and_async():
    @measure("sync op")
    def double(x):
        return x * 2

    @measure()
    async def triple(x):
        return x * 3

    assert double(2) == 4
    assert await triple(2) == 6
    assert triple.__name__ == "triple"
