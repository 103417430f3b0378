# src/focus_companion/stats/render.py

from __future__ import annotations

from collections.abc import Sequence

from ..timer.session_models import round_half_up
from .aggregator import average_session_minutes
from .stats_models import DayStudy, ScoreBreakdown, Stats

CHART_WIDTH = 15
CHART_MIN_SCALE_MINUTES = 30


def format_minutes(total: int) -> str:
    hours, minutes = divmod(max(0, int(total)), 60)
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"


def productivity_bar(score: int, length: int = 20) -> str:
    filled = round_half_up(max(0, min(100, score)) / 100 * length)
    if score >= 80:
        char = "█"
    elif score >= 50:
        char = "▓"
    elif score >= 20:
        char = "▒"
    else:
        char = "░"
    return char * filled + "░" * (length - filled)


def achievements(stats: Stats) -> list[str]:
    out: list[str] = []

    if stats.total_study_minutes >= 600:
        out.append("Master Scholar")
    elif stats.total_study_minutes >= 300:
        out.append("Dedicated Student")
    elif stats.total_study_minutes >= 60:
        out.append("Study Starter")

    if stats.total_sessions >= 20:
        out.append("Session Champion")
    elif stats.total_sessions >= 10:
        out.append("Consistent Learner")

    if stats.streak >= 5:
        out.append("Streak Master")
    elif stats.streak >= 3:
        out.append("Regular Student")

    return out


def study_chart(days: Sequence[DayStudy]) -> str:
    scale = max([CHART_MIN_SCALE_MINUTES, *(d.minutes for d in days)])
    lines = []
    for d in days:
        share = d.minutes / scale
        length = max(1, round_half_up(share * CHART_WIDTH)) if d.minutes > 0 else 0
        if share >= 0.8:
            char = "█"
        elif share >= 0.6:
            char = "▓"
        elif share >= 0.3:
            char = "▒"
        else:
            char = "░"
        bar = char * length
        label = d.day.strftime("%a")
        lines.append(f"{label}: {bar} {d.minutes}m" if bar else f"{label}: {d.minutes}m")
    return "\n".join(lines)


def render_stats(stats: Stats, last_7_days: Sequence[DayStudy], score: ScoreBreakdown) -> str:
    weekly_total = sum(d.minutes for d in last_7_days)

    lines = [
        "STUDY STATISTICS",
        "",
        f"Total study time: {format_minutes(stats.total_study_minutes)}",
        f"Completed sessions: {stats.total_sessions}",
        f"Average session: {average_session_minutes(stats)}m",
        f"Longest session: {stats.longest_session_minutes}m",
        f"Completed tasks: {stats.total_completed_tasks}",
    ]
    if stats.streak > 1:
        lines.append(f"Current streak: {stats.streak} days")

    lines += [
        "",
        f"Productivity score: {score.total}/100",
        productivity_bar(score.total),
        (
            f"  activity {score.activity}/25 · streak {score.streak}/25 · "
            f"sessions {score.sessions}/25 · tasks {score.tasks}/25"
        ),
    ]

    earned = achievements(stats)
    if earned:
        lines += ["", "Achievements:", *(f"  - {a}" for a in earned)]

    lines += ["", "Last 7 days", f"Total: {weekly_total}m", study_chart(last_7_days)]
    return "\n".join(lines)
