# src/focus_companion/timer/session_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from .session_models import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """
    One Session per user, with per-user mutual exclusion.

    All access happens on the runtime event loop. Mutations must go through
    `locked(user_id)`: timer callbacks and commands interleave at every await,
    so a stop racing a tick would otherwise see a half-updated session.
    Different users have different locks and never wait on each other.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_or_create(self, user_id: str) -> Session:
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id)
            self._sessions[user_id] = session
            logger.debug("Session created user=%s", user_id)
        return session

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    @contextlib.asynccontextmanager
    async def locked(self, user_id: str) -> AsyncIterator[Session]:
        """Exclusive access to a user's session for the duration of the block."""
        async with self._lock_for(user_id):
            yield self._get_or_create(user_id)

    def peek(self, user_id: str) -> Session:
        """
        Unlocked read. Only for snapshots that copy fields without awaiting in between.
        """
        return self._get_or_create(user_id)

    def user_ids(self) -> list[str]:
        return list(self._sessions.keys())
