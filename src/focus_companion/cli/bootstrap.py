# src/focus_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (clock/scheduler/stores/notifier/state machine).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier
from ..connectors.routing import RoutingNotifier
from ..core.clock import SystemClock
from ..core.ports import Clock, Notifier, Scheduler
from ..core.state import AppState
from ..stats.aggregator import StatsAggregator
from ..tasks.task_store import TaskStore
from ..timer.scheduler import AsyncioScheduler, TimerRegistry
from ..timer.session_store import SessionStore
from ..timer.state_machine import SessionStateMachine, TimerPolicy

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if getattr(settings, "matrix_enabled", False):
        settings.matrix_store_path.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
    notifier: Notifier | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the clock/scheduler/notifier) injectable makes the app easy
    to test and avoids hidden global config reads. If settings is None, falls back
    to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if getattr(settings, "data_dir", None) is not None:
        _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    scheduler = scheduler or AsyncioScheduler(clock)
    notifier = notifier or RoutingNotifier(default=ConsoleNotifier())

    tasks = TaskStore(clock)
    stats = StatsAggregator(clock, task_counter=tasks)
    sessions = SessionStore()
    timers = TimerRegistry(scheduler)
    policy = TimerPolicy.from_settings(settings)

    machine = SessionStateMachine(
        store=sessions,
        scheduler=scheduler,
        registry=timers,
        stats=stats,
        notifier=notifier,
        clock=clock,
        policy=policy,
    )
    logger.debug("State created policy=%s", policy)

    return AppState(
        settings=settings,
        clock=clock,
        notifier=notifier,
        sessions=sessions,
        scheduler=scheduler,
        timers=timers,
        stats=stats,
        tasks=tasks,
        machine=machine,
    )
