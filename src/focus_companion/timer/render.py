# src/focus_companion/timer/render.py

"""
Plain-text rendering of timer displays.

The state machine decides *what* to show (a ProgressSnapshot, a completion event);
these helpers decide how it reads. Connectors may further adapt the text to their
transport (Matrix formatting, console prefixes).
"""

from __future__ import annotations

import random

from .session_models import ProgressSnapshot, SessionState

CONTROLS_RUNNING: tuple[str, ...] = ("pause", "stop")
CONTROLS_PAUSED: tuple[str, ...] = ("resume", "stop")
CONTROLS_IDLE: tuple[str, ...] = ("focus 25", "focus 45", "focus 60", "stats")

_FILL_CHARS = ("█", "█", "█", "█", "▓")

_MOTIVATION = (
    "Stay focused! Your future self will thank you.",
    "Every minute of focused study counts!",
    "Small steps lead to big achievements. Keep going!",
    "Your determination today shapes your success tomorrow.",
    "Focus on progress, not perfection. You're doing great!",
    "Consistency is key to mastery. Keep up the good work!",
    "Deep focus leads to deep understanding. Stay in the zone!",
    "Remember why you started. Your goals are worth it!",
)

_MILESTONES = {
    25: "25% complete! You're off to a great start!",
    50: "Halfway there! Keep up the momentum!",
    75: "75% complete! The finish line is in sight!",
    100: "Session complete! Excellent work!",
}


def controls_for(state: SessionState) -> tuple[str, ...]:
    if state == SessionState.RUNNING:
        return CONTROLS_RUNNING
    if state == SessionState.PAUSED:
        return CONTROLS_PAUSED
    return CONTROLS_IDLE


def format_duration_ms(ms: int) -> str:
    """HH:MM:SS, or MM:SS under an hour. Negative input shows as zero."""
    total_seconds = max(0, int(ms)) // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def progress_bar(percent: int, length: int = 20) -> str:
    percent = max(0, min(100, int(percent)))
    filled = (percent * length) // 100
    chars = []
    for i in range(filled):
        # Position within the filled part picks the gradient character.
        chars.append(_FILL_CHARS[min(4, (i * 5) // filled)])
    return "".join(chars) + "░" * (length - filled)


def milestone_message(percent: int) -> str | None:
    return _MILESTONES.get(percent)


def motivational_message(rng: random.Random | None = None) -> str:
    return (rng or random).choice(_MOTIVATION)


def render_timer_message(snapshot: ProgressSnapshot, *, motivation: str | None = None) -> str:
    if snapshot.state == SessionState.IDLE:
        return "No active focus session. Use /focus <minutes> to start one."

    lines = ["Study Focus Timer", ""]
    if snapshot.state == SessionState.PAUSED:
        lines.append(f"Paused - {format_duration_ms(snapshot.remaining_ms)} remaining")
    else:
        lines.append(f"Time remaining: {format_duration_ms(snapshot.remaining_ms)}")
    lines.append(f"Progress: {snapshot.percent}%")
    lines.append(progress_bar(snapshot.percent))

    milestone = milestone_message(snapshot.percent)
    if milestone:
        lines.append(milestone)

    if snapshot.ends_at is not None:
        lines.append(f"Ends at {snapshot.ends_at.strftime('%H:%M')}")

    lines.append("")
    lines.append(motivation if motivation is not None else motivational_message())
    lines.append("Use /stop to end the session early.")
    return "\n".join(lines)


def _badge(planned_minutes: int) -> str:
    if planned_minutes >= 90:
        return "[trophy]"
    if planned_minutes >= 45:
        return "[gold]"
    if planned_minutes >= 25:
        return "[silver]"
    return "[bronze]"


def render_completion_message(*, planned_minutes: int, actual_minutes: int, streak: int) -> str:
    stars = "*" * max(0, min(5, -(-actual_minutes // 10)))
    if planned_minutes >= 60:
        quote = "Deep work leads to deep insights. Well done!"
    elif planned_minutes >= 30:
        quote = "Consistency is the key to mastery. Keep it up!"
    else:
        quote = "Small steps lead to big achievements!"

    lines = [
        f"{_badge(planned_minutes)} SESSION COMPLETE",
        "",
        f"You've completed your {planned_minutes}-minute study session!",
        f"Actual study time: {actual_minutes} minutes {stars}".rstrip(),
    ]
    if streak > 1:
        lines.append(f"Day streak: {streak}")
    lines += [
        "",
        quote,
        "Take a well-deserved break. Start another session with /focus when ready.",
    ]
    return "\n".join(lines)


def render_stopped_message(committed_minutes: int | None) -> str:
    if committed_minutes is None:
        return "Timer stopped.\nThe session was too short to be recorded."
    return f"Timer stopped.\nRecorded {committed_minutes} minutes of focus."


def render_break_over_message() -> str:
    return (
        "BREAK COMPLETE\n\n"
        "Your break time is over!\n"
        "Ready for another productive study session?\n"
        "Use /focus to start a new timer."
    )
