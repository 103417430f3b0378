# src/focus_companion/timer/session_models.py

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum


class SessionState(StrEnum):
    """
    Stored session state.

    "completed" is not a state: completion is an event that returns the session to idle.
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerRejection(StrEnum):
    """Why a command was refused. Returned to the caller, never raised."""

    INVALID_DURATION = "invalid_duration"
    NO_ACTIVE_TIMER = "no_active_timer"
    NO_PAUSED_TIMER = "no_paused_timer"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class Session:
    user_id: str
    state: SessionState = SessionState.IDLE
    start_time: datetime | None = None
    planned_minutes: int = 0
    pause_started_at: datetime | None = None
    total_paused_ms: int = 0
    paused_minutes: float = 0.0
    render_handle: str | None = None
    generation: int = 0

    @property
    def planned_end(self) -> datetime | None:
        # Pauses never move the deadline.
        if self.start_time is None:
            return None
        return self.start_time + timedelta(minutes=self.planned_minutes)

    def reset(self) -> None:
        """Back to idle defaults. The generation is kept so stale triggers stay stale."""
        self.state = SessionState.IDLE
        self.start_time = None
        self.planned_minutes = 0
        self.pause_started_at = None
        self.total_paused_ms = 0
        self.paused_minutes = 0.0
        self.render_handle = None


@dataclass(slots=True, frozen=True)
class ProgressSnapshot:
    """Read-only view of a session, used for rendering."""

    user_id: str
    state: SessionState
    generation: int
    planned_minutes: int = 0
    started_at: datetime | None = None
    ends_at: datetime | None = None
    remaining_ms: int = 0
    elapsed_ms: int = 0
    percent: int = 0

    @property
    def active(self) -> bool:
        return self.state != SessionState.IDLE


@dataclass(slots=True, frozen=True)
class StartResult:
    ok: bool
    rejection: TimerRejection | None = None
    render_handle: str | None = None
    ends_at: datetime | None = None
    generation: int = 0


@dataclass(slots=True, frozen=True)
class TimerResult:
    ok: bool
    rejection: TimerRejection | None = None
    # Set when a resume found the deadline already passed and completed the session.
    completed_minutes: int | None = None


@dataclass(slots=True, frozen=True)
class StopResult:
    was_active: bool
    committed_minutes: int | None = None
