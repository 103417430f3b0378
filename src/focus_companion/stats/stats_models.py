# src/focus_companion/stats/stats_models.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime


@dataclass(slots=True)
class Stats:
    """
    Per-user study statistics. Counters only grow; nothing is ever deleted.

    total_completed_tasks is not accumulated here: it is mirrored from the task list
    whenever stats are read.
    """

    total_study_minutes: int = 0
    total_sessions: int = 0
    longest_session_minutes: int = 0
    total_completed_tasks: int = 0
    streak: int = 0
    last_study_at: datetime | None = None
    daily_minutes: dict[date, int] = field(default_factory=dict)

    def copy(self) -> Stats:
        return replace(self, daily_minutes=dict(self.daily_minutes))


@dataclass(slots=True, frozen=True)
class DayStudy:
    day: date
    minutes: int


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    """Productivity score parts, each in [0, 25]."""

    activity: int
    streak: int
    sessions: int
    tasks: int

    @property
    def total(self) -> int:
        return self.activity + self.streak + self.sessions + self.tasks
