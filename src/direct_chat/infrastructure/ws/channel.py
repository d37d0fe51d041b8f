"""Delivery channel: targeted, broadcast and acknowledged emissions over WebSocket."""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

from direct_chat.application.dto.events import AckResult
from direct_chat.domain.value_objects.enums import AckStatus, EventName
from direct_chat.infrastructure.ws.protocol import WsOutbound
from direct_chat.infrastructure.ws.presence import PresenceRegistry

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class DeliveryChannel:
    """Routes events to connected users through the presence registry.

    Lifecycle:
      * One instance lives on ``app.state.channel`` for the process.
      * The WebSocket endpoint calls ``attach``/``detach`` around a connection
        and feeds ``ack`` frames into ``resolve_ack``.
      * Services emit through ``emit_to``, ``emit_to_with_ack`` and ``broadcast``.
    """

    def __init__(self, presence: PresenceRegistry | None = None) -> None:
        self.presence = presence or PresenceRegistry()
        # ack_id → (user the frame was sent to, future resolved by its ack)
        self._pending: dict[str, tuple[str, asyncio.Future[Any]]] = {}

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def attach(self, user_id: str, connection: Connection) -> None:
        online = self.presence.register(user_id, connection)
        logger.info("User %s connected (online=%d)", user_id, len(online))
        await self._broadcast_online(online)

    async def detach(self, user_id: str, connection: Connection | None = None) -> None:
        was_online = user_id in self.presence
        online = self.presence.unregister(user_id, connection)
        if was_online:
            logger.info("User %s disconnected (online=%d)", user_id, len(online))
        await self._broadcast_online(online)

    async def shutdown(self) -> None:
        for user_id, connection in self.presence.items():
            try:
                await connection.close(code=1001, reason="Server shutting down")
            except Exception:  # noqa: BLE001
                logger.debug("Close failed for %s", user_id, exc_info=True)
            self.presence.unregister(user_id, connection)

    def is_online(self, user_id: str) -> bool:
        return user_id in self.presence

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    async def emit_to(self, user_id: str, event: str, data: dict[str, Any]) -> bool:
        """Send an event to one user. Returns False when it was dropped."""
        connection = self.presence.lookup(user_id)
        if connection is None:
            logger.debug("Dropping %s for offline user %s", event, user_id)
            return False
        return await self._send(user_id, connection, WsOutbound(type=event, data=data))

    async def emit_to_with_ack(
        self,
        user_id: str,
        event: str,
        data: dict[str, Any],
        *,
        timeout: float,
    ) -> AckResult:
        """Send an event and wait up to ``timeout`` seconds for the user's ack."""
        connection = self.presence.lookup(user_id)
        if connection is None:
            return AckResult(status=AckStatus.NO_RECIPIENT)

        ack_id = uuid.uuid4().hex
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[ack_id] = (user_id, fut)
        try:
            sent = await self._send(
                user_id, connection, WsOutbound(type=event, data=data, ack_id=ack_id),
            )
            if not sent:
                return AckResult(status=AckStatus.NO_RECIPIENT)
            ack_data = await asyncio.wait_for(fut, timeout=timeout)
            return AckResult(status=AckStatus.ACKED, data=ack_data)
        except asyncio.TimeoutError:
            logger.info("No ack for %s %s from %s within %.2fs", event, ack_id, user_id, timeout)
            return AckResult(status=AckStatus.TIMED_OUT)
        finally:
            self._pending.pop(ack_id, None)

    def resolve_ack(self, user_id: str, ack_id: str, data: Any) -> bool:
        """Complete a pending ``emit_to_with_ack`` wait. Returns True if one matched."""
        pending = self._pending.get(ack_id)
        if pending is None:
            logger.debug("Late or unknown ack %s from %s", ack_id, user_id)
            return False
        target, fut = pending
        if target != user_id:
            logger.warning("Ack %s sent by %s but addressed to %s, ignoring", ack_id, user_id, target)
            return False
        if not fut.done():
            fut.set_result(data)
        return True

    async def broadcast(self, event: str, data: dict[str, Any]) -> None:
        payload = WsOutbound(type=event, data=data)
        for user_id, connection in self.presence.items():
            await self._send(user_id, connection, payload)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _broadcast_online(self, online: list[str]) -> None:
        await self.broadcast(EventName.ONLINE_USERS, {"userIds": online})

    async def _send(self, user_id: str, connection: Connection, payload: WsOutbound) -> bool:
        try:
            await connection.send_text(payload.model_dump_json())
        except Exception:  # noqa: BLE001
            logger.warning("Send of %s to %s failed, dropping connection", payload.type, user_id)
            self.presence.unregister(user_id, connection)
            return False
        return True
