# tests/test_render.py

from __future__ import annotations

import random
from datetime import UTC, date, datetime

import pytest

from focus_companion.stats.render import format_minutes, productivity_bar, render_stats, study_chart
from focus_companion.stats.stats_models import DayStudy, ScoreBreakdown, Stats
from focus_companion.tasks.render import render_task_list
from focus_companion.tasks.task_models import TodoTask
from focus_companion.timer.render import (
    format_duration_ms,
    milestone_message,
    motivational_message,
    progress_bar,
    render_completion_message,
    render_stopped_message,
    render_timer_message,
)
from focus_companion.timer.session_models import ProgressSnapshot, SessionState


@pytest.mark.parametrize(
    ("ms", "expected"),
    [(0, "00:00"), (61_000, "01:01"), (25 * 60_000, "25:00"), (3_661_000, "01:01:01"), (-5_000, "00:00")],
)
def test_format_duration_ms(ms: int, expected: str) -> None:
    assert format_duration_ms(ms) == expected


def test_progress_bar_shape() -> None:
    assert progress_bar(0) == "░" * 20
    assert "░" not in progress_bar(100)

    half = progress_bar(50)
    assert len(half) == 20
    assert half.count("░") == 10
    assert half.startswith("█")


def test_milestones() -> None:
    assert milestone_message(50) == "Halfway there! Keep up the momentum!"
    assert milestone_message(51) is None


def test_render_timer_message_running_and_paused() -> None:
    started = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
    running = ProgressSnapshot(
        user_id="u",
        state=SessionState.RUNNING,
        generation=1,
        planned_minutes=20,
        started_at=started,
        ends_at=datetime(2024, 1, 15, 9, 20, tzinfo=UTC),
        remaining_ms=15 * 60_000,
        elapsed_ms=5 * 60_000,
        percent=25,
    )

    text = render_timer_message(running, motivation="Keep going.")
    assert "Time remaining: 15:00" in text
    assert "Progress: 25%" in text
    assert "25% complete!" in text
    assert "Ends at 09:20" in text
    assert "Keep going." in text

    paused = ProgressSnapshot(
        user_id="u",
        state=SessionState.PAUSED,
        generation=1,
        planned_minutes=20,
        started_at=started,
        remaining_ms=10 * 60_000,
        percent=50,
    )
    assert "Paused - 10:00 remaining" in render_timer_message(paused, motivation="")


def test_render_timer_message_idle() -> None:
    idle = ProgressSnapshot(user_id="u", state=SessionState.IDLE, generation=3)
    assert render_timer_message(idle).startswith("No active focus session.")


def test_motivational_message_is_seedable() -> None:
    assert motivational_message(random.Random(7)) == motivational_message(random.Random(7))


def test_completion_message_mentions_streak_only_when_longer_than_a_day() -> None:
    one = render_completion_message(planned_minutes=25, actual_minutes=25, streak=1)
    three = render_completion_message(planned_minutes=25, actual_minutes=22, streak=3)

    assert "25-minute study session" in one
    assert "Day streak" not in one
    assert "Actual study time: 22 minutes ***" in three
    assert "Day streak: 3" in three


def test_stopped_message() -> None:
    assert "too short" in render_stopped_message(None)
    assert "Recorded 12 minutes" in render_stopped_message(12)


def test_format_minutes() -> None:
    assert format_minutes(45) == "45m"
    assert format_minutes(125) == "2h 5m"


def test_productivity_bar_length() -> None:
    assert productivity_bar(0) == "░" * 20
    assert productivity_bar(100) == "█" * 20
    assert len(productivity_bar(55)) == 20


def test_study_chart_labels_and_scale() -> None:
    days = [DayStudy(day=date(2024, 1, 15), minutes=60), DayStudy(day=date(2024, 1, 16), minutes=0)]

    lines = study_chart(days).splitlines()

    assert lines[0] == "Mon: " + "█" * 15 + " 60m"
    assert lines[1] == "Tue: 0m"


def test_render_stats_contains_score_and_week() -> None:
    stats = Stats(total_study_minutes=130, total_sessions=4, longest_session_minutes=50, streak=3)
    week = [DayStudy(day=date(2024, 1, 15 + i), minutes=m) for i, m in enumerate([0, 0, 0, 0, 40, 40, 50])]
    score = ScoreBreakdown(activity=4, streak=11, sessions=3, tasks=0)

    text = render_stats(stats, week, score)

    assert "Total study time: 2h 10m" in text
    assert "Current streak: 3 days" in text
    assert "Productivity score: 18/100" in text
    assert "Study Starter" in text
    assert "Regular Student" in text
    assert "Total: 130m" in text


def test_render_task_list() -> None:
    now = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
    tasks = [
        TodoTask(id=1, text="Read chapter 5", completed=False, created_at=now),
        TodoTask(id=2, text="Flashcards", completed=True, created_at=now, completed_at=now),
    ]

    text = render_task_list(tasks)

    assert "[ ] 1. Read chapter 5 (!!!)" in text
    assert "[x] 2. Flashcards" in text
    assert "Progress: 50%" in text
    assert "No tasks yet" in render_task_list([])
