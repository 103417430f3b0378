# tests/test_scheduler.py

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

import pytest

from focus_companion.core.clock import SystemClock
from focus_companion.timer.scheduler import AsyncioScheduler, TimerHandle, TimerKind, TimerRegistry

from .fakes import FakeClock, ManualScheduler


async def _noop() -> None:
    return None


@pytest.mark.asyncio
async def test_schedule_once_fires_once() -> None:
    clock = SystemClock()
    sched = AsyncioScheduler(clock)
    calls: list[int] = []

    async def cb() -> None:
        calls.append(1)

    job = sched.schedule_once(clock.now() + timedelta(milliseconds=20), cb, label="once")
    await asyncio.sleep(0.15)

    assert calls == [1]
    assert job.fired == 1


@pytest.mark.asyncio
async def test_cancelled_job_never_fires() -> None:
    clock = SystemClock()
    sched = AsyncioScheduler(clock)
    calls: list[int] = []

    async def cb() -> None:
        calls.append(1)

    job = sched.schedule_once(clock.now() + timedelta(milliseconds=30), cb)
    assert sched.cancel(job) is True
    assert sched.cancel(job) is False

    await asyncio.sleep(0.1)
    assert calls == []
    assert job.cancelled


@pytest.mark.asyncio
async def test_recurring_job_repeats_until_cancelled() -> None:
    sched = AsyncioScheduler(SystemClock())
    calls: list[int] = []

    async def cb() -> None:
        calls.append(1)

    job = sched.schedule_recurring(0.01, cb, label="tick")
    await asyncio.sleep(0.1)
    sched.cancel(job)
    fired = len(calls)

    await asyncio.sleep(0.05)
    assert fired >= 3
    assert len(calls) == fired


@pytest.mark.asyncio
async def test_failing_callback_is_logged_and_does_not_stop_recurrence(caplog) -> None:
    sched = AsyncioScheduler(SystemClock())
    calls: list[int] = []

    async def boom() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    caplog.set_level(logging.ERROR, logger="focus_companion.timer.scheduler")
    job = sched.schedule_recurring(0.01, boom, label="boom")
    await asyncio.sleep(0.08)
    sched.cancel(job)
    await sched.drain()

    assert len(calls) >= 2
    assert "Scheduled callback failed label=boom" in caplog.text


@pytest.mark.asyncio
async def test_drain_waits_for_running_callbacks() -> None:
    clock = SystemClock()
    sched = AsyncioScheduler(clock)
    finished: list[int] = []

    async def slow() -> None:
        await asyncio.sleep(0.05)
        finished.append(1)

    sched.schedule_once(clock.now(), slow)
    await asyncio.sleep(0.01)
    await sched.drain()

    assert finished == [1]


def test_registry_store_replaces_and_cancels_previous() -> None:
    sched = ManualScheduler(FakeClock())
    registry = TimerRegistry(sched)
    first = sched.schedule_recurring(60, _noop)
    second = sched.schedule_recurring(60, _noop)

    registry.store(TimerHandle("u", TimerKind.TICK, 1, first))
    registry.store(TimerHandle("u", TimerKind.TICK, 2, second))

    assert first.cancelled
    assert not second.cancelled
    assert registry.get("u", TimerKind.TICK).generation == 2


def test_registry_cancel_superseded_keeps_current_generation() -> None:
    clock = FakeClock()
    sched = ManualScheduler(clock)
    registry = TimerRegistry(sched)
    old_break = sched.schedule_once(clock.now(), _noop)
    tick = sched.schedule_recurring(60, _noop)

    registry.store(TimerHandle("u", TimerKind.BREAK_REMINDER, 1, old_break))
    registry.store(TimerHandle("u", TimerKind.TICK, 2, tick))

    assert registry.cancel_superseded("u", 2) == 1
    assert old_break.cancelled
    assert [h.kind for h in registry.handles("u")] == [TimerKind.TICK]


def test_registry_cancel_kinds_matches_generation_and_kind() -> None:
    clock = FakeClock()
    sched = ManualScheduler(clock)
    registry = TimerRegistry(sched)
    tick = sched.schedule_recurring(60, _noop)
    completion = sched.schedule_once(clock.now(), _noop)
    reminder = sched.schedule_once(clock.now(), _noop)

    registry.store(TimerHandle("u", TimerKind.TICK, 3, tick))
    registry.store(TimerHandle("u", TimerKind.COMPLETION, 3, completion))
    registry.store(TimerHandle("u", TimerKind.BREAK_REMINDER, 3, reminder))

    assert registry.cancel_kinds("u", 2, [TimerKind.TICK]) == 0
    assert registry.cancel_kinds("u", 3, [TimerKind.TICK, TimerKind.COMPLETION]) == 2
    assert not reminder.cancelled
    assert registry.user_ids() == ["u"]


def test_registry_discard_does_not_cancel() -> None:
    clock = FakeClock()
    sched = ManualScheduler(clock)
    registry = TimerRegistry(sched)
    job = sched.schedule_once(clock.now(), _noop)
    handle = TimerHandle("u", TimerKind.BREAK_REMINDER, 1, job)
    registry.store(handle)

    registry.discard(handle)

    assert not job.cancelled
    assert registry.get("u", TimerKind.BREAK_REMINDER) is None
    assert registry.user_ids() == []


def test_registry_tolerates_cancel_failures(caplog) -> None:
    class ExplodingScheduler(ManualScheduler):
        def cancel(self, job) -> bool:
            raise RuntimeError("cannot cancel")

    clock = FakeClock()
    sched = ExplodingScheduler(clock)
    registry = TimerRegistry(sched)
    handle = TimerHandle("u", TimerKind.TICK, 1, sched.schedule_recurring(60, _noop))
    registry.store(handle)

    with caplog.at_level(logging.WARNING):
        assert registry.cancel(handle) is False

    assert registry.handles("u") == []
    assert "Cancel failed" in caplog.text
