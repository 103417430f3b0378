# src/focus_companion/timer/state_machine.py

from __future__ import annotations

"""
Per-user focus session state machine.

    idle --start--> running --pause--> paused --resume--> running
    running|paused --stop--> idle           (commits if more than a minute was studied)
    running --completion--> idle            (commits planned minus paused minutes)
    running --tick--> running               (display refresh only)

Every operation for one user runs under that user's session lock. Scheduled triggers
carry the generation they were scheduled under; a trigger whose generation no longer
matches (or that finds the session in the wrong state) is a stale trigger and is dropped.
That check, not timer cancellation, is what guarantees a stopped session stays stopped.

Notifications are best-effort: delivery failures are logged and never undo a transition.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial

from ..core.errors import NotificationDeliveryFailed
from ..core.ports import Clock, Controls, Notifier, Scheduler
from ..stats.aggregator import StatsAggregator
from .render import (
    CONTROLS_IDLE,
    controls_for,
    render_break_over_message,
    render_completion_message,
    render_stopped_message,
    render_timer_message,
)
from .scheduler import TimerHandle, TimerKind, TimerRegistry
from .session_models import (
    ProgressSnapshot,
    Session,
    SessionState,
    StartResult,
    StopResult,
    TimerRejection,
    TimerResult,
    round_half_up,
)
from .session_store import SessionStore

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000

_SESSION_KINDS = (TimerKind.TICK, TimerKind.COMPLETION)


def _ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


@dataclass(slots=True, frozen=True)
class TimerPolicy:
    min_duration_minutes: int = 1
    max_duration_minutes: int = 180
    tick_interval_seconds: float = 60.0
    break_reminder_minutes: int = 5
    commit_threshold_minutes: float = 1.0
    notify_timeout_seconds: float = 10.0

    @staticmethod
    def from_settings(settings) -> "TimerPolicy":
        d = TimerPolicy()
        return TimerPolicy(
            min_duration_minutes=int(getattr(settings, "min_duration_minutes", d.min_duration_minutes)),
            max_duration_minutes=int(getattr(settings, "max_duration_minutes", d.max_duration_minutes)),
            tick_interval_seconds=float(getattr(settings, "tick_interval_seconds", d.tick_interval_seconds)),
            break_reminder_minutes=int(getattr(settings, "break_reminder_minutes", d.break_reminder_minutes)),
            commit_threshold_minutes=float(
                getattr(settings, "commit_threshold_minutes", d.commit_threshold_minutes)
            ),
            notify_timeout_seconds=float(getattr(settings, "notify_timeout_seconds", d.notify_timeout_seconds)),
        )


class SessionStateMachine:
    def __init__(
            self,
            *,
            store: SessionStore,
            scheduler: Scheduler,
            registry: TimerRegistry,
            stats: StatsAggregator,
            notifier: Notifier,
            clock: Clock,
            policy: TimerPolicy | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._registry = registry
        self._stats = stats
        self._notifier = notifier
        self._clock = clock
        self._policy = policy or TimerPolicy()

    @property
    def policy(self) -> TimerPolicy:
        return self._policy

    # ---- commands ----

    def is_valid_duration(self, minutes: int) -> bool:
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            return False
        return minutes > 0 and self._policy.min_duration_minutes <= minutes <= self._policy.max_duration_minutes

    async def start(self, user_id: str, minutes: int) -> StartResult:
        if not self.is_valid_duration(minutes):
            logger.info("Start rejected user=%s minutes=%r", user_id, minutes)
            return StartResult(ok=False, rejection=TimerRejection.INVALID_DURATION)

        async with self._store.locked(user_id) as session:
            now = self._clock.now()
            session.generation += 1
            generation = session.generation

            cancelled = self._registry.cancel_superseded(user_id, generation)
            if cancelled:
                logger.debug("Cancelled %d superseded timers user=%s", cancelled, user_id)

            session.reset()
            session.state = SessionState.RUNNING
            session.start_time = now
            session.planned_minutes = minutes
            ends_at = now + timedelta(minutes=minutes)

            tick_job = self._scheduler.schedule_recurring(
                self._policy.tick_interval_seconds,
                partial(self.on_tick, user_id, generation),
                label=f"tick:{user_id}:{generation}",
            )
            self._registry.store(TimerHandle(user_id, TimerKind.TICK, generation, tick_job))

            completion_job = self._scheduler.schedule_once(
                ends_at,
                partial(self.on_completion, user_id, generation),
                label=f"completion:{user_id}:{generation}",
            )
            self._registry.store(
                TimerHandle(user_id, TimerKind.COMPLETION, generation, completion_job, due_at=ends_at)
            )

            logger.info(
                "Session started user=%s minutes=%d generation=%d ends_at=%s",
                user_id,
                minutes,
                generation,
                ends_at.isoformat(timespec="seconds"),
            )

            snapshot = self._snapshot(session, now)
            session.render_handle = await self._send(
                user_id, render_timer_message(snapshot), controls_for(session.state)
            )
            return StartResult(
                ok=True,
                render_handle=session.render_handle,
                ends_at=ends_at,
                generation=generation,
            )

    async def pause(self, user_id: str) -> TimerResult:
        async with self._store.locked(user_id) as session:
            if session.state != SessionState.RUNNING:
                return TimerResult(ok=False, rejection=TimerRejection.NO_ACTIVE_TIMER)

            now = self._clock.now()
            session.pause_started_at = now
            session.state = SessionState.PAUSED
            logger.info("Session paused user=%s generation=%d", user_id, session.generation)

            await self._refresh_display(session, now)
            return TimerResult(ok=True)

    async def resume(self, user_id: str) -> TimerResult:
        async with self._store.locked(user_id) as session:
            if session.state != SessionState.PAUSED or session.pause_started_at is None:
                return TimerResult(ok=False, rejection=TimerRejection.NO_PAUSED_TIMER)

            now = self._clock.now()
            ends_at = session.planned_end
            if ends_at is not None and now >= ends_at:
                # The completion trigger fired while paused and was dropped.
                # Only the part of the pause before the deadline counts as paused.
                self._close_pause(session, ends_at)
                session.state = SessionState.RUNNING
                logger.info("Resumed past deadline user=%s; completing now", user_id)
                actual = await self._complete(session, session.generation)
                return TimerResult(ok=True, completed_minutes=actual)

            delta_ms = self._close_pause(session, now)
            session.state = SessionState.RUNNING
            logger.info(
                "Session resumed user=%s paused_ms=%d total_paused_ms=%d",
                user_id,
                delta_ms,
                session.total_paused_ms,
            )

            await self._refresh_display(session, now)
            return TimerResult(ok=True)

    async def stop(self, user_id: str) -> StopResult:
        async with self._store.locked(user_id) as session:
            # The generation is left as is: triggers already in flight stay stale.
            self._registry.cancel_kinds(user_id, session.generation, _SESSION_KINDS)

            was_active = session.state != SessionState.IDLE
            committed: int | None = None

            if was_active and session.start_time is not None:
                now = self._clock.now()
                elapsed_minutes = (_ms(now - session.start_time) - session.total_paused_ms) / MS_PER_MINUTE
                if elapsed_minutes > self._policy.commit_threshold_minutes:
                    committed = round_half_up(elapsed_minutes)
                    self._stats.commit_session(user_id, committed)

            handle = session.render_handle
            session.reset()

            if was_active:
                logger.info("Session stopped user=%s committed=%s", user_id, committed)
                if handle is not None:
                    await self._edit(user_id, handle, render_stopped_message(committed), CONTROLS_IDLE)

            return StopResult(was_active=was_active, committed_minutes=committed)

    def render_state(self, user_id: str) -> ProgressSnapshot:
        """Current progress for display. Reads without awaiting, so it never sees a partial update."""
        return self._snapshot(self._store.peek(user_id), self._clock.now())

    # ---- scheduled triggers ----

    async def on_tick(self, user_id: str, generation: int) -> None:
        async with self._store.locked(user_id) as session:
            if not self._is_current(session, generation, TimerKind.TICK):
                return
            await self._refresh_display(session, self._clock.now())

    async def on_completion(self, user_id: str, generation: int) -> None:
        async with self._store.locked(user_id) as session:
            if not self._is_current(session, generation, TimerKind.COMPLETION):
                return
            await self._complete(session, generation)

    async def on_break_reminder(self, user_id: str, generation: int) -> None:
        async with self._store.locked(user_id) as session:
            handle = self._registry.get(user_id, TimerKind.BREAK_REMINDER)
            if handle is None or handle.generation != generation or session.generation != generation:
                logger.debug("Stale break reminder user=%s generation=%d", user_id, generation)
                return

            self._registry.discard(handle)
            await self._send(user_id, render_break_over_message(), CONTROLS_IDLE)

    # ---- maintenance ----

    async def reconcile(self) -> int:
        """
        Leak sweep: cancel handles that no longer belong to a live session.

        - tick/completion handles of idle sessions or of old generations,
        - break reminders more than a minute past due.

        Break reminders always belong to an idle session (they are scheduled by the
        completion that reset it), so they are deliberately spared until overdue:
        a pending one is still wanted, and it removes itself when it fires.
        """
        cancelled = 0
        for user_id in self._registry.user_ids():
            async with self._store.locked(user_id) as session:
                now = self._clock.now()
                for handle in self._registry.handles(user_id):
                    if handle.kind == TimerKind.BREAK_REMINDER:
                        stale = handle.due_at is not None and handle.due_at + timedelta(minutes=1) < now
                    else:
                        stale = session.state == SessionState.IDLE or handle.generation != session.generation
                    if stale and self._registry.cancel(handle):
                        cancelled += 1

        if cancelled:
            logger.info("Reconciliation cancelled %d leaked timers", cancelled)
        return cancelled

    # ---- helpers ----

    @staticmethod
    def _close_pause(session: Session, until: datetime) -> int:
        assert session.pause_started_at is not None
        delta_ms = max(0, _ms(until - session.pause_started_at))
        session.total_paused_ms += delta_ms
        session.paused_minutes += delta_ms / MS_PER_MINUTE
        session.pause_started_at = None
        return delta_ms

    async def _complete(self, session: Session, generation: int) -> int:
        """Commit planned minus paused minutes, go idle, announce, schedule the break reminder."""
        user_id = session.user_id
        planned = session.planned_minutes
        actual = round_half_up(planned - session.paused_minutes)
        if actual < 0:
            logger.warning(
                "Negative actual minutes user=%s planned=%d paused=%.2f; committing 0",
                user_id,
                planned,
                session.paused_minutes,
            )
            actual = 0

        stats = self._stats.commit_session(user_id, actual)
        self._registry.cancel_kinds(user_id, generation, _SESSION_KINDS)
        session.reset()
        logger.info("Session completed user=%s planned=%d actual=%d", user_id, planned, actual)

        await self._send(
            user_id,
            render_completion_message(planned_minutes=planned, actual_minutes=actual, streak=stats.streak),
            CONTROLS_IDLE,
        )
        self._schedule_break_reminder(user_id, generation)
        return actual

    def _is_current(self, session: Session, generation: int, kind: TimerKind) -> bool:
        if session.generation != generation or session.state != SessionState.RUNNING:
            logger.debug(
                "Stale %s dropped user=%s trigger_generation=%d current=%d state=%s",
                kind.value,
                session.user_id,
                generation,
                session.generation,
                session.state.value,
            )
            return False
        return True

    def _schedule_break_reminder(self, user_id: str, generation: int) -> None:
        minutes = self._policy.break_reminder_minutes
        if minutes <= 0:
            return
        due_at = self._clock.now() + timedelta(minutes=minutes)
        job = self._scheduler.schedule_once(
            due_at,
            partial(self.on_break_reminder, user_id, generation),
            label=f"break:{user_id}:{generation}",
        )
        self._registry.store(TimerHandle(user_id, TimerKind.BREAK_REMINDER, generation, job, due_at=due_at))

    def _snapshot(self, session: Session, now: datetime) -> ProgressSnapshot:
        if session.state == SessionState.IDLE or session.start_time is None:
            return ProgressSnapshot(user_id=session.user_id, state=SessionState.IDLE, generation=session.generation)

        paused_ms = session.total_paused_ms
        if session.pause_started_at is not None:
            # Freeze the display while paused.
            paused_ms += max(0, _ms(now - session.pause_started_at))

        planned_ms = session.planned_minutes * MS_PER_MINUTE
        elapsed_ms = max(0, _ms(now - session.start_time) - paused_ms)
        remaining_ms = max(0, planned_ms - elapsed_ms)
        percent = max(0, min(100, (elapsed_ms * 100) // planned_ms)) if planned_ms > 0 else 0

        return ProgressSnapshot(
            user_id=session.user_id,
            state=session.state,
            generation=session.generation,
            planned_minutes=session.planned_minutes,
            started_at=session.start_time,
            ends_at=session.planned_end,
            remaining_ms=remaining_ms,
            elapsed_ms=elapsed_ms,
            percent=percent,
        )

    async def _refresh_display(self, session: Session, now: datetime) -> None:
        if session.render_handle is None:
            return
        snapshot = self._snapshot(session, now)
        await self._edit(
            session.user_id,
            session.render_handle,
            render_timer_message(snapshot),
            controls_for(session.state),
        )

    async def _send(self, user_id: str, text: str, controls: Controls) -> str | None:
        try:
            return await asyncio.wait_for(
                self._notifier.send(user_id=user_id, text=text, controls=controls),
                timeout=self._policy.notify_timeout_seconds,
            )
        except NotificationDeliveryFailed as e:
            logger.warning("Notification not delivered: %s", e)
        except TimeoutError:
            logger.warning("Notification send timed out user=%s", user_id)
        except Exception:
            logger.exception("Notification send failed user=%s", user_id)
        return None

    async def _edit(self, user_id: str, handle: str, text: str, controls: Controls) -> None:
        try:
            await asyncio.wait_for(
                self._notifier.edit(user_id=user_id, handle=handle, text=text, controls=controls),
                timeout=self._policy.notify_timeout_seconds,
            )
        except NotificationDeliveryFailed as e:
            logger.warning("Display update not delivered: %s", e)
        except TimeoutError:
            logger.warning("Display update timed out user=%s", user_id)
        except Exception:
            logger.exception("Display update failed user=%s", user_id)
