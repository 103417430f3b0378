# src/focus_companion/stats/aggregator.py

from __future__ import annotations

"""
Study statistics.

StatsAggregator consumes "session committed" events from the timer core and exposes
read-only derived views (daily series, productivity score). It never looks at
sessions directly; the state machine decides what gets committed and how it is rounded.
"""

import logging
import threading
from collections.abc import Sequence
from datetime import date, timedelta

from ..core.ports import Clock, TaskCountPort
from ..timer.session_models import round_half_up
from .stats_models import DayStudy, ScoreBreakdown, Stats

logger = logging.getLogger(__name__)

SCORE_PART_MAX = 25
ACTIVITY_CAP_MINUTES_PER_DAY = 120
STREAK_CAP_DAYS = 7
SESSIONS_CAP = 30
COMPLETED_TASKS_CAP = 50
WEEK_DAYS = 7


def _score_part(value: float, cap: float) -> int:
    return max(0, min(SCORE_PART_MAX, round_half_up(value / cap * SCORE_PART_MAX)))


def compute_productivity_score(stats: Stats, last_7_days: Sequence[DayStudy]) -> ScoreBreakdown:
    """
    Four parts, each min(25, round(value / cap * 25)):
    - activity: average minutes per day over the week (cap 120)
    - streak (cap 7)
    - total sessions (cap 30)
    - completed tasks (cap 50)
    """
    weekly_avg = sum(d.minutes for d in last_7_days) / WEEK_DAYS
    return ScoreBreakdown(
        activity=_score_part(weekly_avg, ACTIVITY_CAP_MINUTES_PER_DAY),
        streak=_score_part(stats.streak, STREAK_CAP_DAYS),
        sessions=_score_part(stats.total_sessions, SESSIONS_CAP),
        tasks=_score_part(stats.total_completed_tasks, COMPLETED_TASKS_CAP),
    )


def average_session_minutes(stats: Stats) -> int:
    if stats.total_sessions <= 0:
        return 0
    return round_half_up(stats.total_study_minutes / stats.total_sessions)


def next_streak(previous_day: date | None, today: date, current: int) -> int:
    if previous_day is None:
        return 1
    diff = (today - previous_day).days
    if diff == 1:
        return current + 1
    if diff == 0:
        return current
    return 1


class StatsAggregator:
    """
    In-memory per-user stats.

    commit_session() is the only mutation. A threading lock keeps reads from other
    threads (e.g. a console rendering /stats) consistent with commits on the loop.
    """

    def __init__(self, clock: Clock, task_counter: TaskCountPort | None = None) -> None:
        self._clock = clock
        self._task_counter = task_counter
        self._stats: dict[str, Stats] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, user_id: str) -> Stats:
        stats = self._stats.get(user_id)
        if stats is None:
            stats = Stats()
            self._stats[user_id] = stats
        return stats

    def commit_session(self, user_id: str, minutes: int) -> Stats:
        """Record one finished session of `minutes` (already rounded by the caller)."""
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
            raise ValueError(f"minutes must be a non-negative int, got {minutes!r}")

        now = self._clock.now()
        today = now.date()

        with self._lock:
            stats = self._get_or_create(user_id)
            stats.total_study_minutes += minutes
            stats.total_sessions += 1
            stats.longest_session_minutes = max(stats.longest_session_minutes, minutes)
            stats.daily_minutes[today] = stats.daily_minutes.get(today, 0) + minutes

            previous_day = stats.last_study_at.date() if stats.last_study_at is not None else None
            stats.streak = next_streak(previous_day, today, stats.streak)
            stats.last_study_at = now
            snapshot = stats.copy()

        logger.info(
            "Session committed user=%s minutes=%d sessions=%d streak=%d",
            user_id,
            minutes,
            snapshot.total_sessions,
            snapshot.streak,
        )
        return snapshot

    def get_stats(self, user_id: str) -> Stats:
        with self._lock:
            stats = self._get_or_create(user_id).copy()

        if self._task_counter is not None:
            try:
                stats.total_completed_tasks = int(self._task_counter.completed_task_count(user_id))
            except Exception:
                logger.exception("completed_task_count failed user=%s", user_id)
        return stats

    def daily_series(self, user_id: str, days: int = WEEK_DAYS) -> list[DayStudy]:
        """Last `days` calendar days ending today, oldest first, zero-filled."""
        today = self._clock.now().date()
        with self._lock:
            daily = dict(self._get_or_create(user_id).daily_minutes)
        return [
            DayStudy(day=day, minutes=daily.get(day, 0))
            for day in (today - timedelta(days=i) for i in range(max(0, days) - 1, -1, -1))
        ]

    def productivity_score(self, user_id: str) -> ScoreBreakdown:
        return compute_productivity_score(self.get_stats(user_id), self.daily_series(user_id, WEEK_DAYS))
