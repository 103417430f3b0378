# src/focus_companion/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the timer runtime (event loop thread +
reconciliation sweep), then starts connectors:
- console REPL in the main thread (optional),
- Matrix connector as a task on the runtime loop (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..timer.runtime import TimerRuntime, run_reconciliation_loop

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logging.getLogger("nio").setLevel(max(console_level, logging.INFO))

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    runtime = TimerRuntime()
    runtime.start()
    runtime.spawn(
        lambda: run_reconciliation_loop(
            state.machine.reconcile,
            interval_seconds=settings.reconcile_interval_minutes * 60.0,
        )
    )

    if settings.matrix_enabled:
        from ..connectors.matrix_connector import run_matrix_connector

        runtime.spawn(lambda: run_matrix_connector(state))

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError):
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state, runtime)
        else:
            logger.info("Console disabled. Running background connectors only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runtime.stop()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
