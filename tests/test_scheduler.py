# tests/test_scheduler.py

import asyncio

import pytest

from seawatch.services.replay.scheduler import ReplayScheduler


@pytest.mark.asyncio
async def test_runs_until_stopped():
    stop = asyncio.Event()
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 3:
            stop.set()

    scheduler = ReplayScheduler(tick, interval=0.01)
    await asyncio.wait_for(scheduler.run(stop), timeout=5)

    assert len(calls) == 3
    assert scheduler.ticks == 3


@pytest.mark.asyncio
async def test_stop_before_first_fire():
    stop = asyncio.Event()
    stop.set()
    calls = []

    async def tick():
        calls.append(1)

    await asyncio.wait_for(ReplayScheduler(tick, interval=10).run(stop), timeout=5)
    assert calls == []


@pytest.mark.asyncio
async def test_stop_interrupts_wait_not_tick():
    stop = asyncio.Event()
    finished = []

    async def tick():
        stop.set()
        await asyncio.sleep(0.05)
        finished.append(1)

    scheduler = ReplayScheduler(tick, interval=0.01)
    await asyncio.wait_for(scheduler.run(stop), timeout=5)

    assert finished == [1]


@pytest.mark.asyncio
async def test_failing_tick_does_not_stop_loop():
    stop = asyncio.Event()
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) < 3:
            raise RuntimeError("node unavailable")
        stop.set()

    scheduler = ReplayScheduler(tick, interval=0.01)
    await asyncio.wait_for(scheduler.run(stop), timeout=5)

    assert scheduler.ticks == 3
    assert scheduler.failures == 2


@pytest.mark.asyncio
async def test_overrunning_tick_skips_fires():
    stop = asyncio.Event()
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 2:
            stop.set()
        await asyncio.sleep(0.05)

    scheduler = ReplayScheduler(tick, interval=0.01)
    await asyncio.wait_for(scheduler.run(stop), timeout=5)

    assert scheduler.ticks == 2
    assert scheduler.skipped >= 1


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ReplayScheduler(lambda: asyncio.sleep(0), interval=0)
