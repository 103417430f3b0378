# src/focus_companion/connectors/matrix_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import time

from nio import AsyncClient, MatrixRoom, RoomMessageText, RoomSendResponse, exceptions

from ..cli.commands import registry as command_registry
from ..core.errors import NotificationDeliveryFailed
from ..core.ports import Controls
from ..core.state import AppState
from .matrix_client import login_matrix
from .routing import RoutingNotifier, is_matrix_user

logger = logging.getLogger(__name__)


def _ms_now() -> int:
    return int(time.time() * 1000)


def _room_allowlist(settings_rooms: list[str]) -> set[str] | None:
    rooms = [r.strip() for r in (settings_rooms or []) if str(r).strip()]
    return set(rooms) if rooms else None


def _with_controls(text: str, controls: Controls) -> str:
    if not controls:
        return text
    return text + "\n\n" + " · ".join(f"/{c}" for c in controls)


async def _send_text(client: AsyncClient, *, room_id: str, text: str) -> None:
    await client.room_send(
        room_id=room_id,
        message_type="m.room.message",
        content={"msgtype": "m.text", "body": text},
    )


class MatrixNotifier:
    """
    Timer displays in Matrix.

    send() posts a message and returns its event id as the display handle;
    edit() replaces that message in place (m.replace relation).
    Each user is answered in the room they last wrote a command from.
    """

    def __init__(self, client: AsyncClient, *, default_room: str | None = None) -> None:
        self._client = client
        self._default_room = default_room
        self._rooms: dict[str, str] = {}

    def remember_room(self, user_id: str, room_id: str) -> None:
        self._rooms[user_id] = room_id

    def _room_for(self, user_id: str) -> str:
        room_id = self._rooms.get(user_id) or self._default_room
        if not room_id:
            raise NotificationDeliveryFailed(user_id, "no known Matrix room")
        return room_id

    async def _room_send(self, user_id: str, content: dict) -> str:
        try:
            resp = await self._client.room_send(
                room_id=self._room_for(user_id),
                message_type="m.room.message",
                content=content,
            )
        except exceptions.LocalProtocolError as e:
            raise NotificationDeliveryFailed(user_id, str(e)) from e
        if not isinstance(resp, RoomSendResponse):
            raise NotificationDeliveryFailed(user_id, repr(resp))
        return resp.event_id

    async def send(self, *, user_id: str, text: str, controls: Controls = ()) -> str | None:
        body = _with_controls(text, controls)
        return await self._room_send(user_id, {"msgtype": "m.text", "body": body})

    async def edit(self, *, user_id: str, handle: str, text: str, controls: Controls = ()) -> None:
        body = _with_controls(text, controls)
        await self._room_send(
            user_id,
            {
                "msgtype": "m.text",
                "body": f"* {body}",
                "m.new_content": {"msgtype": "m.text", "body": body},
                "m.relates_to": {"rel_type": "m.replace", "event_id": handle},
            },
        )


async def run_matrix_connector(state: AppState) -> None:
    """
    Matrix connector (async), runs on the timer runtime loop:

    init -> notifier route -> callbacks -> sync loop

    Commands are awaited directly on this loop, so they share the per-user session
    locks with scheduled triggers. To stop it, cancel the task.
    """
    settings = state.settings
    client = await login_matrix(settings)
    if client is None:
        logger.error("Matrix login failed; connector will stop.")
        return

    startup_ts = _ms_now()
    allowed_rooms = _room_allowlist(getattr(settings, "matrix_rooms", []) or [])
    logger.info("Matrix allowed_rooms=%s", allowed_rooms if allowed_rooms is not None else "ALL")

    notifier = MatrixNotifier(client, default_room=next(iter(allowed_rooms)) if allowed_rooms else None)
    router = state.notifier if isinstance(state.notifier, RoutingNotifier) else None
    if router is not None:
        router.add_route(is_matrix_user, notifier)
    else:
        logger.warning("Notifier is not routable; Matrix users will not get timer displays.")

    async def message_callback(room: MatrixRoom, event: RoomMessageText) -> None:
        # Ignore history from before startup and our own messages.
        ts = getattr(event, "server_timestamp", None)
        if ts is not None and ts <= startup_ts:
            return
        if event.sender == client.user_id:
            return
        if allowed_rooms is not None and room.room_id not in allowed_rooms:
            return

        body = (event.body or "").strip()
        if not body.startswith("/"):
            return

        logger.info("Matrix <%s> %s: %r", room.display_name, event.sender, body)
        notifier.remember_room(event.sender, room.room_id)

        try:
            resp = await command_registry.handle(state, body, user_id=event.sender)
        except Exception:
            logger.exception("Command handler crashed.")
            resp = "Internal error while handling a command."

        if resp:
            try:
                await _send_text(client, room_id=room.room_id, text=resp)
            except Exception:
                logger.exception("Failed to send command reply.")

    client.add_event_callback(message_callback, RoomMessageText)

    try:
        logger.info("Matrix initial sync...")
        await client.sync(timeout=30000, full_state=True)
        logger.info("Matrix initial sync done. Joined rooms: %d", len(client.rooms))
        while True:
            await client.sync(timeout=30000, full_state=False)
    except asyncio.CancelledError:
        logger.info("Matrix connector cancelled.")
        raise
    except Exception:
        logger.exception("Matrix connector crashed.")
    finally:
        if router is not None:
            router.remove_route(notifier)
        with contextlib.suppress(Exception):
            await client.close()
        logger.info("Matrix connector stopped.")
