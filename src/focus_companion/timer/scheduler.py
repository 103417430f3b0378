# src/focus_companion/timer/scheduler.py

from __future__ import annotations

"""
Timer scheduling.

Two layers:
- AsyncioScheduler: one-shot and recurring callbacks on the running event loop.
- TimerRegistry: the per-user handle table. Every handle carries the session
  generation it was scheduled under, so a new start (or a stop) can cancel exactly
  the handles it supersedes.

Cancellation here is an optimization that stops useless work. The generation check
in the state machine is what actually keeps a stopped session from coming back:
a callback that was already in flight when we cancelled it still runs, and is
dropped there.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from ..core.ports import Clock, ScheduledJob, Scheduler, TriggerCallback

logger = logging.getLogger(__name__)


class TimerKind(StrEnum):
    TICK = "tick"
    COMPLETION = "completion"
    BREAK_REMINDER = "break_reminder"


@dataclass(slots=True, eq=False)
class Job:
    callback: TriggerCallback
    due_at: datetime
    interval_seconds: float | None = None
    label: str = ""
    cancelled: bool = False
    fired: int = 0
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def recurring(self) -> bool:
        return self.interval_seconds is not None


class AsyncioScheduler:
    """
    Scheduler backed by loop.call_later().

    Must be used from the event loop thread. Each fire runs the callback in its own
    task; exceptions are logged and never reach the loop. One-shot jobs are done after
    their single fire; recurring jobs re-arm before running the callback.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._inflight: set[asyncio.Task[None]] = set()

    def schedule_once(self, when: datetime, callback: TriggerCallback, *, label: str = "") -> Job:
        loop = asyncio.get_running_loop()
        delay = max(0.0, (when - self._clock.now()).total_seconds())
        job = Job(callback=callback, due_at=when, label=label)
        job._timer = loop.call_later(delay, self._fire, job)
        logger.debug("Scheduled once label=%s delay=%.1fs", label, delay)
        return job

    def schedule_recurring(self, interval_seconds: float, callback: TriggerCallback, *, label: str = "") -> Job:
        loop = asyncio.get_running_loop()
        interval = max(0.001, float(interval_seconds))
        job = Job(
            callback=callback,
            due_at=self._clock.now() + timedelta(seconds=interval),
            interval_seconds=interval,
            label=label,
        )
        job._timer = loop.call_later(interval, self._fire, job)
        logger.debug("Scheduled recurring label=%s every=%.1fs", label, interval)
        return job

    def cancel(self, job: ScheduledJob) -> bool:
        if not isinstance(job, Job) or job.cancelled:
            return False
        job.cancelled = True
        if job._timer is not None:
            job._timer.cancel()
        return True

    def _fire(self, job: Job) -> None:
        if job.cancelled:
            return

        loop = asyncio.get_running_loop()
        job.fired += 1
        if job.interval_seconds is not None:
            job.due_at = self._clock.now() + timedelta(seconds=job.interval_seconds)
            job._timer = loop.call_later(job.interval_seconds, self._fire, job)
        else:
            job._timer = None

        task = loop.create_task(self._invoke(job))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    @staticmethod
    async def _invoke(job: Job) -> None:
        try:
            await job.callback()
        except Exception:
            logger.exception("Scheduled callback failed label=%s", job.label)

    async def drain(self) -> None:
        """Wait for callbacks that are currently running (used on shutdown)."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)


@dataclass(slots=True, frozen=True)
class TimerHandle:
    user_id: str
    kind: TimerKind
    generation: int
    job: ScheduledJob
    due_at: datetime | None = None


class TimerRegistry:
    """
    Generation-tagged handle table: at most one handle per (user, kind).

    Callers hold the user's session lock while mutating a user's entries.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handles: dict[str, dict[TimerKind, TimerHandle]] = {}

    def store(self, handle: TimerHandle) -> None:
        per_user = self._handles.setdefault(handle.user_id, {})
        previous = per_user.get(handle.kind)
        per_user[handle.kind] = handle
        if previous is not None and previous.job is not handle.job:
            # Replaced without an explicit cancel; don't leak the old job.
            self._cancel_job(previous)

    def get(self, user_id: str, kind: TimerKind) -> TimerHandle | None:
        return self._handles.get(user_id, {}).get(kind)

    def handles(self, user_id: str) -> list[TimerHandle]:
        return list(self._handles.get(user_id, {}).values())

    def user_ids(self) -> list[str]:
        return [uid for uid, per_user in self._handles.items() if per_user]

    def discard(self, handle: TimerHandle) -> None:
        """Forget a handle without cancelling it (one-shot jobs after they fired)."""
        per_user = self._handles.get(handle.user_id)
        if per_user and per_user.get(handle.kind) is handle:
            del per_user[handle.kind]

    def cancel(self, handle: TimerHandle) -> bool:
        self.discard(handle)
        return self._cancel_job(handle)

    def cancel_superseded(self, user_id: str, generation: int) -> int:
        """Cancel every handle of this user that belongs to another generation."""
        stale = [h for h in self.handles(user_id) if h.generation != generation]
        return sum(1 for h in stale if self.cancel(h))

    def cancel_kinds(self, user_id: str, generation: int, kinds: Iterable[TimerKind]) -> int:
        """Cancel exactly this generation's handles of the given kinds."""
        wanted = set(kinds)
        matching = [h for h in self.handles(user_id) if h.kind in wanted and h.generation == generation]
        return sum(1 for h in matching if self.cancel(h))

    def _cancel_job(self, handle: TimerHandle) -> bool:
        try:
            return self._scheduler.cancel(handle.job)
        except Exception:
            # Tolerated: the generation guard drops the trigger if it still fires.
            logger.warning(
                "Cancel failed user=%s kind=%s generation=%s",
                handle.user_id,
                handle.kind.value,
                handle.generation,
                exc_info=True,
            )
            return False
