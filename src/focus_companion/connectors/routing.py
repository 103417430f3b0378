# src/focus_companion/connectors/routing.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.errors import NotificationDeliveryFailed
from ..core.ports import Controls, Notifier

logger = logging.getLogger(__name__)

UserMatcher = Callable[[str], bool]


def is_matrix_user(user_id: str) -> bool:
    # Matrix ids look like "@name:server".
    return user_id.startswith("@") and ":" in user_id


class RoutingNotifier:
    """
    Notifier that forwards to the connector owning a user id.

    Routes are checked in registration order; the default handles everything else.
    Connectors that start later (Matrix) add their route when they are ready.
    """

    def __init__(self, default: Notifier | None = None) -> None:
        self._default = default
        self._routes: list[tuple[UserMatcher, Notifier]] = []

    def add_route(self, matches: UserMatcher, notifier: Notifier) -> None:
        self._routes.append((matches, notifier))

    def remove_route(self, notifier: Notifier) -> None:
        self._routes = [(m, n) for m, n in self._routes if n is not notifier]

    def _pick(self, user_id: str) -> Notifier:
        for matches, notifier in self._routes:
            if matches(user_id):
                return notifier
        if self._default is None:
            raise NotificationDeliveryFailed(user_id, "no connector for this user")
        return self._default

    async def send(self, *, user_id: str, text: str, controls: Controls = ()) -> str | None:
        return await self._pick(user_id).send(user_id=user_id, text=text, controls=controls)

    async def edit(self, *, user_id: str, handle: str, text: str, controls: Controls = ()) -> None:
        await self._pick(user_id).edit(user_id=user_id, handle=handle, text=text, controls=controls)
