# src/focus_companion/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Console visibility per logger prefix; the first matching prefix wins.
# Anything else (nio, py.warnings, asyncio) shows at ERROR and above. The log file gets everything.
_CONSOLE_RULES: tuple[tuple[str, int], ...] = (
    # Fires every tick; only problems are worth interrupting the prompt for.
    ("focus_companion.timer.scheduler", logging.WARNING),
    # Transitions and commits show; stale-trigger drops are DEBUG and stay in the file.
    ("focus_companion.timer.state_machine", logging.INFO),
    ("focus_companion.timer.runtime", logging.INFO),
    ("focus_companion.stats", logging.INFO),
    # Sync loop and login run in the background and would interleave with the REPL.
    ("focus_companion.connectors.matrix_", logging.WARNING),
    ("focus_companion.", logging.NOTSET),
)
_CONSOLE_DEFAULT_LEVEL = logging.ERROR


def console_threshold(logger_name: str) -> int:
    for prefix, level in _CONSOLE_RULES:
        if logger_name.startswith(prefix):
            return level
    return _CONSOLE_DEFAULT_LEVEL


class _ConsoleNoiseFilter(logging.Filter):
    """Keeps the interactive console readable; see _CONSOLE_RULES."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/focus",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered by _CONSOLE_RULES) and to <log_dir>/focus.log.

    Replaces any handlers already on the root logger, so call it once at startup
    before anything logs. Returns the log file path.
    """
    log_file = Path(log_dir) / "focus.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    # Stale triggers and delivery failures are DEBUG/WARNING; the file keeps them.
    logfile = logging.FileHandler(str(log_file), encoding="utf-8")
    logfile.setLevel(file_level)

    for handler in (console, logfile):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_file
