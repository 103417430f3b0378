# src/focus_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The timer core depends on Protocols instead of concrete implementations.
This keeps connectors (console, Matrix), the task list and the time source swappable
and makes testing deterministic (fake clock, fake notifier, manual scheduler).
"""

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Protocol

Controls = Sequence[str]
# Control names shown next to a display, e.g. ("pause", "stop"). Rendering belongs to the connector.

TriggerCallback = Callable[[], Awaitable[None]]


class Clock(Protocol):
    """Sole time source. Must return timezone-aware datetimes."""
    def now(self) -> datetime: ...


class Notifier(Protocol):
    """
    Connector-side port: how the timer core shows things to a user.

    - send() creates a new display and returns an opaque handle (or None if the
      transport cannot edit messages later).
    - edit() refreshes an existing display in place.

    Both are best-effort: implementations raise NotificationDeliveryFailed (or anything
    else) on failure, and the core logs it without touching session state.
    """

    def send(self, *, user_id: str, text: str, controls: Controls = ()) -> Awaitable[str | None]: ...

    def edit(
            self,
            *,
            user_id: str,
            handle: str,
            text: str,
            controls: Controls = (),
    ) -> Awaitable[None]: ...


class TaskCountPort(Protocol):
    """Read-only view of the task list used by the productivity score."""
    def completed_task_count(self, user_id: str) -> int: ...


class ScheduledJob(Protocol):
    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """
    Time-based callbacks.

    Cancellation is advisory: a callback that is already running is not interrupted.
    """

    def schedule_once(self, when: datetime, callback: TriggerCallback, *, label: str = "") -> ScheduledJob: ...

    def schedule_recurring(
            self,
            interval_seconds: float,
            callback: TriggerCallback,
            *,
            label: str = "",
    ) -> ScheduledJob: ...

    def cancel(self, job: ScheduledJob) -> bool: ...
