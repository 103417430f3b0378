# src/focus_companion/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable

from ..core.state import AppState
from ..stats.aggregator import WEEK_DAYS, compute_productivity_score
from ..stats.render import render_stats
from ..tasks.render import render_task_list
from ..timer.render import render_timer_message
from ..timer.session_models import SessionState, TimerRejection

CommandHandler = Callable[[AppState, list[str], str], Awaitable[str]]

logger = logging.getLogger(__name__)

PRESET_DURATIONS = (25, 45, 60, 90, 120)

_MINUTES_RE = re.compile(r"^(\d+)m?$", re.IGNORECASE)
_HOURS_RE = re.compile(r"^(\d+)h$", re.IGNORECASE)
_HOURS_MINUTES_RE = re.compile(r"^(\d+)h(\d+)m$", re.IGNORECASE)


def parse_duration(raw: str) -> int | None:
    """Minutes from "25", "25m", "1h" or "1h30m". None if the text is not a duration."""
    s = (raw or "").strip()
    if m := _MINUTES_RE.match(s):
        return int(m.group(1))
    if m := _HOURS_RE.match(s):
        return int(m.group(1)) * 60
    if m := _HOURS_MINUTES_RE.match(s):
        return int(m.group(1)) * 60 + int(m.group(2))
    return None


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /focus, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str, user_id: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, user_id)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_task_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


async def cmd_help(state: AppState, args: list[str], user_id: str) -> str:
    return registry.build_help()


async def cmd_focus(state: AppState, args: list[str], user_id: str) -> str:
    """
    /focus             -> show duration options
    /focus 25 | 45m | 1h | 1h30m -> start a session (an active one is stopped first)
    """
    policy = state.machine.policy
    bounds = f"{policy.min_duration_minutes} and {policy.max_duration_minutes} minutes"

    if not args:
        presets = ", ".join(str(m) for m in PRESET_DURATIONS if state.machine.is_valid_duration(m))
        return (
            "Choose how long you want to focus:\n"
            f"  /focus <minutes>  (presets: {presets})\n"
            "  Formats: 25, 45m, 1h, 1h30m"
        )

    minutes = parse_duration(args[0])
    if minutes is None or not state.machine.is_valid_duration(minutes):
        return f"Invalid duration. Please specify a duration between {bounds} (e.g. 25, 45m, 1h, 1h30m)."

    prefix = ""
    if state.machine.render_state(user_id).active:
        stopped = await state.machine.stop(user_id)
        if stopped.committed_minutes is not None:
            prefix = f"Previous session stopped ({stopped.committed_minutes} minutes recorded).\n"
        else:
            prefix = "Previous session stopped.\n"

    result = await state.machine.start(user_id, minutes)
    if not result.ok:
        if result.rejection == TimerRejection.INVALID_DURATION:
            return f"{prefix}Invalid duration. Please specify a duration between {bounds}."
        return f"{prefix}Could not start the timer."

    ends = result.ends_at.strftime("%H:%M") if result.ends_at else "?"
    return f"{prefix}Focus mode activated: {minutes} minutes, ends at {ends}. Let's make this time count."


async def cmd_pause(state: AppState, args: list[str], user_id: str) -> str:
    result = await state.machine.pause(user_id)
    if result.ok:
        return "Timer paused. Use /resume to continue."
    return "You don't have an active focus timer or it's already paused."


async def cmd_resume(state: AppState, args: list[str], user_id: str) -> str:
    result = await state.machine.resume(user_id)
    if result.completed_minutes is not None:
        return (
            "The planned time ran out while the timer was paused. "
            f"Session complete: {result.completed_minutes} minutes recorded."
        )
    if result.ok:
        return "Timer resumed."
    return "You don't have a paused focus timer."


async def cmd_stop(state: AppState, args: list[str], user_id: str) -> str:
    result = await state.machine.stop(user_id)
    if not result.was_active:
        return "You don't have an active focus timer."
    if result.committed_minutes is None:
        return "Timer stopped. The session was too short to be recorded."
    return f"Timer stopped. {result.committed_minutes} minutes recorded."


async def cmd_status(state: AppState, args: list[str], user_id: str) -> str:
    snapshot = state.machine.render_state(user_id)
    if snapshot.state == SessionState.IDLE:
        return render_timer_message(snapshot)
    return render_timer_message(snapshot, motivation="")


async def cmd_stats(state: AppState, args: list[str], user_id: str) -> str:
    stats = state.stats.get_stats(user_id)
    week = state.stats.daily_series(user_id, WEEK_DAYS)
    return render_stats(stats, week, compute_productivity_score(stats, week))


async def cmd_tasks(state: AppState, args: list[str], user_id: str) -> str:
    return render_task_list(state.tasks.list_tasks(user_id))


async def cmd_addtask(state: AppState, args: list[str], user_id: str) -> str:
    text = " ".join(args).strip()
    if not text:
        return "Task description is required. Example: /addtask Read chapter 5"
    task = state.tasks.add_task(user_id, text)
    return f"Task added: {task.id}. {task.text}\nUse /tasks to see all your tasks."


async def cmd_complete(state: AppState, args: list[str], user_id: str) -> str:
    task_id = _parse_task_id(args)
    if task_id is None:
        return "Usage: /complete <task id>. Use /tasks to see ids."
    task = state.tasks.toggle_task(user_id, task_id)
    if task is None:
        return f"Task {task_id} not found."
    if task.completed:
        return f"Task {task.id} marked as completed: {task.text}"
    return f"Task {task.id} marked as pending again: {task.text}"


async def cmd_delete(state: AppState, args: list[str], user_id: str) -> str:
    task_id = _parse_task_id(args)
    if task_id is None:
        return "Usage: /delete <task id>. Use /tasks to see ids."
    if state.tasks.delete_task(user_id, task_id):
        return f"Task {task_id} deleted."
    return f"Task {task_id} not found."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?", "start"])
registry.register("focus", cmd_focus, help_text="Start a focus session: /focus 25 | 45m | 1h30m.")
registry.register("pause", cmd_pause, help_text="Pause the running session.")
registry.register("resume", cmd_resume, help_text="Resume a paused session.")
registry.register("stop", cmd_stop, help_text="Stop the session (records it if longer than a minute).")
registry.register("status", cmd_status, help_text="Show the current timer.", aliases=["timer"])
registry.register("stats", cmd_stats, help_text="Show study statistics and productivity score.")
registry.register("tasks", cmd_tasks, help_text="Show your task list.")
registry.register("addtask", cmd_addtask, help_text="Add a task: /addtask <description>.")
registry.register("complete", cmd_complete, help_text="Toggle a task as done: /complete <id>.", aliases=["done"])
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.")
