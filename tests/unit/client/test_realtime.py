from __future__ import annotations

import pytest

from direct_chat.client.realtime import DISCONNECT, ChatSocket
from direct_chat.infrastructure.ws.protocol import WsOutbound


@pytest.mark.asyncio
async def test_dispatch_routes_frames_to_handlers():
    socket = ChatSocket("ws://chat.test/ws", "token-1")
    received: list[tuple[dict, object]] = []

    async def handler(data, ack):
        received.append((data, ack))

    socket.on("beginTyping", handler)
    await socket._dispatch(WsOutbound(type="beginTyping", data={"fromUserId": "bob"}).model_dump_json())
    await socket._dispatch(WsOutbound(type="endTyping", data={}).model_dump_json())
    await socket._dispatch("not json")

    assert received == [({"fromUserId": "bob"}, None)]


@pytest.mark.asyncio
async def test_frames_with_ack_id_get_an_ack_callable():
    socket = ChatSocket("ws://chat.test/ws", "token-1")
    acks: list[object] = []

    async def handler(data, ack):
        acks.append(ack)

    socket.on("newMessage", handler)
    await socket._dispatch(WsOutbound(type="newMessage", data={}, ack_id="a1").model_dump_json())

    assert callable(acks[0])


@pytest.mark.asyncio
async def test_handler_errors_do_not_escape():
    socket = ChatSocket("ws://chat.test/ws", "token-1")

    async def broken(data, ack):
        raise RuntimeError("boom")

    socket.on("onlineUsers", broken)
    await socket._dispatch(WsOutbound(type="onlineUsers", data={"userIds": []}).model_dump_json())

    socket.off("onlineUsers")
    assert not socket.connected


class _ClosingConnection:
    """Yields the given frames, then ends as if the server hung up."""

    def __init__(self, frames: list[str]) -> None:
        self._frames = frames

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for frame in self._frames:
            yield frame


@pytest.mark.asyncio
async def test_server_close_fires_disconnect_handler():
    socket = ChatSocket("ws://chat.test/ws", "token-1")
    events: list[str] = []

    async def on_typing(data, ack):
        events.append("typing")

    async def on_disconnect(data, ack):
        events.append("disconnect")

    socket.on("beginTyping", on_typing)
    socket.on(DISCONNECT, on_disconnect)
    conn = _ClosingConnection([WsOutbound(type="beginTyping", data={}).model_dump_json()])
    socket._conn = conn

    await socket._read_loop(conn)

    assert events == ["typing", "disconnect"]
    assert not socket.connected


@pytest.mark.asyncio
async def test_disconnect_without_connection_fires_nothing():
    socket = ChatSocket("ws://chat.test/ws", "token-1")
    fired: list[dict] = []

    async def on_disconnect(data, ack):
        fired.append(data)

    socket.on(DISCONNECT, on_disconnect)
    await socket.disconnect()

    assert fired == []
