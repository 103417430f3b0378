# src/focus_companion/connectors/console_connector.py

from __future__ import annotations

import itertools
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.ports import Controls
from ..core.state import AppState
from ..timer.runtime import TimerRuntime

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _format_controls(controls: Controls) -> str:
    if not controls:
        return ""
    return "\n" + "  ".join(f"[/{c}]" for c in controls)


class ConsoleNotifier:
    """
    Notifier for the interactive console.

    A terminal cannot edit old output, so edit() prints the refreshed display again,
    tagged with the display handle it replaces.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    async def send(self, *, user_id: str, text: str, controls: Controls = ()) -> str | None:
        handle = f"console-{next(self._ids)}"
        _print_ts(f"{text}{_format_controls(controls)}\n")
        return handle

    async def edit(self, *, user_id: str, handle: str, text: str, controls: Controls = ()) -> None:
        _print_ts(f"(updated {handle})\n{text}{_format_controls(controls)}\n")


def run_console_loop(state: AppState, runtime: TimerRuntime) -> None:
    """
    Blocking REPL. Commands are executed on the timer runtime loop, so they are
    serialized with scheduled ticks/completions through the same per-user locks.
    """
    user_id = str(getattr(state.settings, "console_user_id", "console"))
    logger.info("Console connector started (user_id=%s).", user_id)
    _print_ts("[CONSOLE] Type /help for commands, /focus 25 to start. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = runtime.submit(command_registry.handle(state, user_input, user_id=user_id))
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is None:
            cmd_response = "Commands start with '/'. Use /help to list them."

        _print_ts(cmd_response)

    logger.info("Console connector finished.")
