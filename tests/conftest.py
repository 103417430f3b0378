# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from focus_companion.cli.bootstrap import create_initial_state
from focus_companion.core.state import AppState
from focus_companion.timer.state_machine import SessionStateMachine

from .fakes import FakeClock, FakeNotifier, ManualScheduler


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and TimerPolicy.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="focus-test",
        log_level="DEBUG",
        console_enabled=False,
        console_user_id="console",
        matrix_enabled=False,
        matrix_rooms=[],
        # Paths (tmp per test run)
        data_dir=tmp_path / "data",
        matrix_store_path=tmp_path / "data" / "matrix_store",
        # Timer policy
        min_duration_minutes=1,
        max_duration_minutes=180,
        tick_interval_seconds=60.0,
        break_reminder_minutes=5,
        commit_threshold_minutes=1.0,
        reconcile_interval_minutes=30.0,
        notify_timeout_seconds=1.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    clock: FakeClock,
    scheduler: ManualScheduler,
    notifier: FakeNotifier,
) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: the stores, the registry and the state machine are the real ones;
    only time, scheduling and delivery are faked.
    """
    return create_initial_state(settings=settings, clock=clock, scheduler=scheduler, notifier=notifier)


@pytest.fixture()
def machine(state: AppState) -> SessionStateMachine:
    return state.machine
