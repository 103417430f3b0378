# tests/test_connectors.py

from __future__ import annotations

from types import SimpleNamespace

import pytest
from nio import RoomSendResponse, exceptions

from focus_companion.connectors.console_connector import ConsoleNotifier, run_console_loop
from focus_companion.connectors.matrix_connector import MatrixNotifier
from focus_companion.connectors.routing import RoutingNotifier, is_matrix_user
from focus_companion.core.errors import NotificationDeliveryFailed

from .fakes import FakeNotifier


class FakeMatrixClient:
    """Captures room_send calls and answers like a homeserver would."""

    def __init__(self) -> None:
        self.calls: list[dict] = []

    async def room_send(self, *, room_id, message_type, content):
        self.calls.append({"room_id": room_id, "message_type": message_type, "content": content})
        return RoomSendResponse(event_id=f"$event{len(self.calls)}", room_id=room_id)


def test_is_matrix_user() -> None:
    assert is_matrix_user("@alice:example.org")
    assert not is_matrix_user("console")
    assert not is_matrix_user("@alice")


@pytest.mark.asyncio
async def test_routing_notifier_picks_connector_by_user() -> None:
    console, matrix = FakeNotifier(), FakeNotifier()
    router = RoutingNotifier(default=console)
    router.add_route(is_matrix_user, matrix)

    await router.send(user_id="@alice:example.org", text="hi", controls=("stop",))
    await router.send(user_id="console", text="hello")
    await router.edit(user_id="@alice:example.org", handle="msg-1", text="edited")

    assert [s.text for s in matrix.sent] == ["hi"]
    assert [e.text for e in matrix.edits] == ["edited"]
    assert [s.text for s in console.sent] == ["hello"]

    router.remove_route(matrix)
    await router.send(user_id="@alice:example.org", text="fallback")
    assert console.sent[-1].text == "fallback"


@pytest.mark.asyncio
async def test_routing_notifier_without_default_raises() -> None:
    router = RoutingNotifier()
    with pytest.raises(NotificationDeliveryFailed):
        await router.send(user_id="console", text="hi")


@pytest.mark.asyncio
async def test_console_notifier_prints_controls(capsys) -> None:
    notifier = ConsoleNotifier()

    handle = await notifier.send(user_id="console", text="Timer", controls=("pause", "stop"))
    await notifier.edit(user_id="console", handle=handle, text="Timer again")

    out = capsys.readouterr().out
    assert handle == "console-1"
    assert "[/pause]  [/stop]" in out
    assert "(updated console-1)" in out


@pytest.mark.asyncio
async def test_matrix_notifier_sends_and_replaces() -> None:
    client = FakeMatrixClient()
    notifier = MatrixNotifier(client)
    notifier.remember_room("@alice:example.org", "!room:example.org")

    handle = await notifier.send(user_id="@alice:example.org", text="Timer", controls=("pause", "stop"))
    await notifier.edit(user_id="@alice:example.org", handle=handle, text="Timer 2")

    assert handle == "$event1"
    first, second = client.calls
    assert first["room_id"] == "!room:example.org"
    assert first["content"]["body"] == "Timer\n\n/pause · /stop"
    assert second["content"]["m.new_content"]["body"] == "Timer 2"
    assert second["content"]["m.relates_to"] == {"rel_type": "m.replace", "event_id": "$event1"}


@pytest.mark.asyncio
async def test_matrix_notifier_without_room_fails() -> None:
    notifier = MatrixNotifier(FakeMatrixClient())
    with pytest.raises(NotificationDeliveryFailed):
        await notifier.send(user_id="@bob:example.org", text="hi")


@pytest.mark.asyncio
async def test_matrix_notifier_wraps_local_send_errors() -> None:
    class RefusingClient(FakeMatrixClient):
        async def room_send(self, *, room_id, message_type, content):
            raise exceptions.LocalProtocolError("Not logged in.")

    notifier = MatrixNotifier(RefusingClient(), default_room="!room:example.org")
    with pytest.raises(NotificationDeliveryFailed):
        await notifier.send(user_id="@bob:example.org", text="hi")


def test_console_loop_runs_commands_until_exit(monkeypatch, capsys) -> None:
    lines = iter(["", "hello", "/ping", "/exit", "/never"])
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(lines))

    submitted: list[str] = []

    class InlineRuntime:
        def submit(self, coro, *, timeout=30.0):
            coro.close()
            submitted.append("cmd")
            return None if len(submitted) == 1 else "pong"

    state = SimpleNamespace(settings=SimpleNamespace(console_user_id="console"))
    run_console_loop(state, InlineRuntime())

    out = capsys.readouterr().out
    assert len(submitted) == 2
    assert "Commands start with '/'" in out
    assert "pong" in out
