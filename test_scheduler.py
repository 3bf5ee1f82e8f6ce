import asyncio

import pytest

from video_funnel.player.scheduler import AsyncioScheduler, TimerGroup


def test_timer_group_cancel_all_closes_group(scheduler):
    fired = []
    group = TimerGroup(scheduler)
    group.later(1.0, lambda: fired.append("once"))
    group.every(0.5, lambda: fired.append("tick"))
    assert group.active_count == 2

    scheduler.advance(1.0)
    assert fired == ["tick", "once", "tick"]

    group.cancel_all()
    scheduler.advance(5.0)
    assert fired == ["tick", "once", "tick"]
    assert group.every(0.5, lambda: None) is None
    assert group.active_count == 0


def test_timer_group_context_manager(scheduler):
    with TimerGroup(scheduler) as group:
        group.every(0.3, lambda: None)
    assert scheduler.active_timers == 0


def test_cancel_single_timer(scheduler):
    fired = []
    group = TimerGroup(scheduler)
    timer = group.every(1.0, lambda: fired.append(1))
    group.later(2.0, lambda: fired.append(2))

    group.cancel(timer)
    group.cancel(None)
    scheduler.advance(3.0)

    assert fired == [2]


@pytest.mark.asyncio
async def test_asyncio_scheduler_repeats_until_cancelled():
    scheduler = AsyncioScheduler()
    ticks = []
    timer = scheduler.call_every(0.01, lambda: ticks.append(scheduler.now()))

    await asyncio.sleep(0.055)
    timer.cancel()
    count = len(ticks)
    await asyncio.sleep(0.03)

    assert count >= 2
    assert len(ticks) == count
    assert timer.active is False


@pytest.mark.asyncio
async def test_asyncio_timer_errors_do_not_stop_interval():
    scheduler = AsyncioScheduler()
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("boom")

    timer = scheduler.call_every(0.01, flaky)
    await asyncio.sleep(0.045)
    timer.cancel()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_asyncio_call_later_fires_once():
    scheduler = AsyncioScheduler()
    fired = []
    timer = scheduler.call_later(0.01, lambda: fired.append(True))

    await asyncio.sleep(0.03)

    assert fired == [True]
    assert timer.active is False
