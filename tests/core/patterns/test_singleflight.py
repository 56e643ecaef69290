"""Tests for single-flight call coalescing."""

import asyncio

import pytest

from fmpcache.core.patterns import SingleFlight


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_execution():
    flight = SingleFlight()
    gate = asyncio.Event()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        await gate.wait()
        return 42

    tasks = [asyncio.create_task(flight.do("AAPL", work)) for _ in range(4)]
    await asyncio.sleep(0)
    assert flight.in_flight("AAPL")

    gate.set()
    results = await asyncio.gather(*tasks)

    assert results == [42, 42, 42, 42]
    assert calls == 1
    assert len(flight) == 0


@pytest.mark.asyncio
async def test_distinct_keys_run_independently():
    flight = SingleFlight()
    seen = []

    async def work(key):
        seen.append(key)
        await asyncio.sleep(0)
        return key.lower()

    results = await asyncio.gather(
        flight.do("AAPL", lambda: work("AAPL")),
        flight.do("MSFT", lambda: work("MSFT")),
    )

    assert results == ["aapl", "msft"]
    assert sorted(seen) == ["AAPL", "MSFT"]


@pytest.mark.asyncio
async def test_failure_is_shared_and_key_released():
    flight = SingleFlight()
    gate = asyncio.Event()
    calls = 0

    async def failing():
        nonlocal calls
        calls += 1
        await gate.wait()
        raise RuntimeError("upstream down")

    tasks = [asyncio.create_task(flight.do("AAPL", failing)) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert calls == 1
    assert all(isinstance(result, RuntimeError) for result in results)
    assert not flight.in_flight("AAPL")

    async def recovered():
        return "ok"

    assert await flight.do("AAPL", recovered) == "ok"


@pytest.mark.asyncio
async def test_sequential_calls_run_again():
    flight = SingleFlight()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        return calls

    assert await flight.do("AAPL", work) == 1
    assert await flight.do("AAPL", work) == 2


@pytest.mark.asyncio
async def test_waiter_takes_over_when_leader_is_cancelled():
    flight = SingleFlight()
    gate = asyncio.Event()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        await gate.wait()
        return calls

    leader = asyncio.create_task(flight.do("AAPL", work))
    await asyncio.sleep(0)
    waiter = asyncio.create_task(flight.do("AAPL", work))
    await asyncio.sleep(0)

    leader.cancel()
    await asyncio.sleep(0)
    gate.set()

    assert await waiter == 2
    with pytest.raises(asyncio.CancelledError):
        await leader
