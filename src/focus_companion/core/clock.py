# src/focus_companion/core/clock.py

from __future__ import annotations

from datetime import datetime


class SystemClock:
    """Wall clock in the local timezone (streaks and daily totals use local calendar days)."""

    def now(self) -> datetime:
        return datetime.now().astimezone()
