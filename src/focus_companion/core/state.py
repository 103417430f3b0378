# src/focus_companion/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..stats.aggregator import StatsAggregator
from ..tasks.task_store import TaskStore
from ..timer.scheduler import TimerRegistry
from ..timer.session_store import SessionStore
from ..timer.state_machine import SessionStateMachine
from .ports import Clock, Notifier, Scheduler


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    clock: Clock
    notifier: Notifier
    sessions: SessionStore
    scheduler: Scheduler
    timers: TimerRegistry
    stats: StatsAggregator
    tasks: TaskStore
    machine: SessionStateMachine
