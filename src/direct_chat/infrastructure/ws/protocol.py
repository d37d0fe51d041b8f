"""WebSocket frame envelope shared by the server and the client."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # startTyping | stopTyping | ack | ping
    data: dict[str, Any] = {}
    ack_id: str | None = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # onlineUsers | beginTyping | endTyping | newMessage | messageDelivered | error | pong
    data: dict[str, Any] = {}
    ack_id: str | None = None  # set when the server waits for an ``ack`` frame
