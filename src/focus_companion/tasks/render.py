# src/focus_companion/tasks/render.py

from __future__ import annotations

from collections.abc import Sequence

from ..timer.session_models import round_half_up
from .task_models import TodoTask

_PRIORITY_MARKS = ("(!!!)", "(!!)", "(!)")


def _status_line(progress: int) -> str:
    if progress == 100:
        return "All tasks complete! Great job!"
    if progress >= 75:
        return "Almost there! Keep going!"
    if progress >= 50:
        return "Good progress! Half way there!"
    if progress >= 25:
        return "Making progress! Keep it up!"
    return "Let's start checking off those tasks!"


def render_task_list(tasks: Sequence[TodoTask]) -> str:
    if not tasks:
        return "TASK LIST\n\nNo tasks yet.\nAdd one with /addtask <description>."

    pending = [t for t in tasks if not t.completed]
    done = [t for t in tasks if t.completed]

    lines = ["TASK LIST", "", f"Pending ({len(pending)}):"]
    for i, task in enumerate(pending):
        # Oldest pending tasks first, marked as most urgent.
        mark = _PRIORITY_MARKS[i] if i < len(_PRIORITY_MARKS) else ""
        lines.append(f"[ ] {task.id}. {task.text} {mark}".rstrip())

    if done:
        lines.append("")
        lines.append(f"Completed ({len(done)}):")
        lines.extend(f"[x] {task.id}. {task.text}" for task in done)

    progress = round_half_up(len(done) * 100 / len(tasks))
    filled = round_half_up(progress * 20 / 100)
    lines += [
        "",
        f"Progress: {progress}%",
        "█" * filled + "░" * (20 - filled),
        _status_line(progress),
        "",
        "/addtask <text> - add  |  /complete <id> - toggle  |  /delete <id> - remove",
    ]
    return "\n".join(lines)
