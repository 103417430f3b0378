# src/focus_companion/timer/runtime.py

from __future__ import annotations

"""
Event loop hosting for the timer core.

All timer callbacks and session commands run on one asyncio loop owned by a
background thread, so blocking connectors (the console REPL) can keep the main thread.
Other threads hand work over with submit().
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_reconciliation_loop(
        reconcile: Callable[[], Awaitable[int]],
        *,
        interval_seconds: float = 30 * 60.0,
) -> None:
    """
    Periodic leak sweep.

    Every interval_seconds call reconcile(); failures are logged and the loop goes on.
    To stop it, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    while True:
        await asyncio.sleep(sleep_s)
        try:
            await reconcile()
        except Exception:
            logger.exception("Reconciliation sweep failed")


class TimerRuntime:
    """Background thread running the event loop for timers and commands."""

    def __init__(self, *, name: str = "focus-timers") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._background: list[asyncio.Task[Any]] = []

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("TimerRuntime is not started")
        return self._loop

    def start(self) -> None:
        if self._thread is not None:
            return

        def runner() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self._loop = loop
            self._ready.set()
            try:
                loop.run_forever()
            finally:
                with contextlib.suppress(Exception):
                    loop.run_until_complete(loop.shutdown_asyncgens())
                with contextlib.suppress(Exception):
                    loop.close()

        self._thread = threading.Thread(target=runner, name=self._name, daemon=True)
        self._thread.start()
        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("Timer event loop did not start")
        logger.info("Timer runtime started.")

    def submit(self, coro: Coroutine[Any, Any, T], *, timeout: float | None = 30.0) -> T:
        """Run a coroutine on the runtime loop and wait for its result (from another thread)."""
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)

    def spawn(self, factory: Callable[[], Coroutine[Any, Any, Any]]) -> None:
        """Start a long-running background task on the loop (cancelled on stop())."""

        async def _create() -> None:
            self._background.append(asyncio.get_running_loop().create_task(factory()))

        self.submit(_create(), timeout=5.0)

    def stop(self, timeout: float = 10.0) -> None:
        if self._loop is None or self._thread is None:
            return

        async def _cancel_background() -> None:
            for task in self._background:
                task.cancel()
            await asyncio.gather(*self._background, return_exceptions=True)
            self._background.clear()

        try:
            self.submit(_cancel_background(), timeout=timeout)
        except Exception:
            logger.debug("Failed to cancel background tasks.", exc_info=True)

        try:
            self._loop.call_soon_threadsafe(self._loop.stop)
        except Exception:
            logger.debug("Failed to signal loop stop.", exc_info=True)

        self._thread.join(timeout=timeout)
        logger.info("Timer runtime stopped.")
