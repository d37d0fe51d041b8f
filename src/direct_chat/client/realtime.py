"""Client side of the realtime channel."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol
from urllib.parse import urlencode

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from direct_chat.domain.value_objects.enums import EventName
from direct_chat.infrastructure.ws.protocol import WsInbound, WsOutbound

logger = logging.getLogger(__name__)

Ack = Callable[[dict[str, Any]], Awaitable[None]]
Handler = Callable[[dict[str, Any], Ack | None], Awaitable[None]]

# Local pseudo-event fired once the connection is gone, whichever side closed it.
DISCONNECT = "disconnect"


class EventSocket(Protocol):
    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str) -> None: ...

    async def emit(self, event: str, data: dict[str, Any]) -> None: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...


class ChatSocket:
    """One WebSocket connection with per-event handlers.

    Frames carrying an ``ack_id`` expect an answer; their handler receives an
    ``ack`` callable that sends it back on the same connection.
    """

    def __init__(self, url: str, token: str) -> None:
        self._url = f"{url}?{urlencode({'token': token})}"
        self._handlers: dict[str, Handler] = {}
        self._conn: ClientConnection | None = None
        self._reader: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event] = handler

    def off(self, event: str) -> None:
        self._handlers.pop(event, None)

    async def connect(self) -> None:
        if self._conn is not None:
            return
        self._conn = await connect(self._url)
        self._reader = asyncio.create_task(self._read_loop(self._conn), name="chat-socket-reader")
        logger.info("Socket connected")

    async def disconnect(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        await conn.close()
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        logger.info("Socket disconnected")
        await self._notify_disconnect()

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        if self._conn is None:
            logger.debug("Not connected, dropping %s", event)
            return
        frame = WsInbound(type=event, data=data)
        try:
            await self._conn.send(frame.model_dump_json())
        except ConnectionClosed:
            logger.info("Connection closed while sending %s", event)

    async def _read_loop(self, conn: ClientConnection) -> None:
        try:
            async for raw in conn:
                await self._dispatch(raw)
        except ConnectionClosed:
            logger.info("Socket closed by server")
        # A client-initiated disconnect has already cleared ``_conn``.
        if self._conn is conn:
            self._conn = None
            await self._notify_disconnect()

    async def _notify_disconnect(self) -> None:
        handler = self._handlers.get(DISCONNECT)
        if handler is None:
            return
        try:
            await handler({}, None)
        except Exception:
            logger.exception("Disconnect handler failed")

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            frame = WsOutbound.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed frame")
            return

        handler = self._handlers.get(frame.type)
        if handler is None:
            return
        ack = self._make_ack(frame.ack_id) if frame.ack_id else None
        try:
            await handler(frame.data, ack)
        except Exception:
            logger.exception("Handler for %s failed", frame.type)

    def _make_ack(self, ack_id: str) -> Ack:
        async def ack(data: dict[str, Any]) -> None:
            if self._conn is None:
                return
            frame = WsInbound(type=EventName.ACK, data=data, ack_id=ack_id)
            await self._conn.send(frame.model_dump_json())

        return ack
