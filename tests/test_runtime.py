# tests/test_runtime.py

from __future__ import annotations

import asyncio
import time
from datetime import timedelta

import pytest

from focus_companion.core.clock import SystemClock
from focus_companion.timer.runtime import TimerRuntime, run_reconciliation_loop
from focus_companion.timer.scheduler import AsyncioScheduler


@pytest.mark.asyncio
async def test_reconciliation_loop_survives_failures() -> None:
    calls: list[int] = []

    async def reconcile() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first sweep fails")
        return 0

    task = asyncio.create_task(run_reconciliation_loop(reconcile, interval_seconds=0.01))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(calls) >= 2


def test_runtime_submit_and_spawn() -> None:
    runtime = TimerRuntime(name="focus-test")
    runtime.start()
    try:
        async def add(a: int, b: int) -> int:
            await asyncio.sleep(0)
            return a + b

        assert runtime.submit(add(2, 3)) == 5

        sweeps: list[int] = []

        async def reconcile() -> int:
            sweeps.append(1)
            return 0

        runtime.spawn(lambda: run_reconciliation_loop(reconcile, interval_seconds=0.01))
        deadline = time.monotonic() + 2.0
        while len(sweeps) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert len(sweeps) >= 2
    finally:
        runtime.stop()


def test_scheduler_runs_on_runtime_loop() -> None:
    runtime = TimerRuntime(name="focus-test")
    runtime.start()
    clock = SystemClock()
    sched = AsyncioScheduler(clock)
    fired: list[int] = []

    async def cb() -> None:
        fired.append(1)

    async def schedule() -> None:
        sched.schedule_once(clock.now() + timedelta(milliseconds=10), cb)

    try:
        runtime.submit(schedule())
        deadline = time.monotonic() + 2.0
        while not fired and time.monotonic() < deadline:
            time.sleep(0.01)
        assert fired == [1]
    finally:
        runtime.stop()


def test_runtime_requires_start() -> None:
    with pytest.raises(RuntimeError):
        _ = TimerRuntime().loop
