from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from direct_chat.api.deps import get_verifier
from direct_chat.application.dto.principal import Principal
from direct_chat.config import settings
from direct_chat.domain.value_objects.enums import EventName
from direct_chat.infrastructure.ws.channel import DeliveryChannel
from direct_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from direct_chat.services import typing_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    channel: DeliveryChannel = websocket.app.state.channel
    user_id = principal.user_id
    await websocket.accept()
    await channel.attach(user_id, websocket)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{user_id}",
    )
    try:
        await _read_loop(websocket, principal, channel)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", user_id)
    finally:
        heartbeat_task.cancel()
        await channel.detach(user_id, websocket)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type=EventName.PONG, data={}).model_dump_json())
    except asyncio.CancelledError:
        pass
    except Exception:  # noqa: BLE001
        logger.debug("Heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, principal: Principal, channel: DeliveryChannel) -> None:
    user_id = principal.user_id
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send_error(ws, "invalid_payload")
            continue

        if msg.type == EventName.PING:
            await ws.send_text(WsOutbound(type=EventName.PONG, data={}).model_dump_json())

        elif msg.type == EventName.ACK:
            if msg.ack_id:
                channel.resolve_ack(user_id, msg.ack_id, msg.data)

        elif msg.type in (EventName.START_TYPING, EventName.STOP_TYPING):
            to_user_id = _typing_target(principal, msg.data)
            if to_user_id is None:
                await _send_error(ws, "invalid_data", type=msg.type)
                continue
            if msg.type == EventName.START_TYPING:
                await typing_service.start_typing(channel, user_id, to_user_id)
            else:
                await typing_service.stop_typing(channel, user_id, to_user_id)

        else:
            await _send_error(ws, "unknown_type", type=msg.type)


def _typing_target(principal: Principal, data: dict[str, Any]) -> str | None:
    to_user_id = data.get("toUserId")
    if not isinstance(to_user_id, str) or not to_user_id:
        return None
    from_user_id = data.get("fromUserId")
    if from_user_id is not None and from_user_id != principal.user_id:
        logger.warning(
            "Typing signal from %s claims fromUserId=%s, using the authenticated id",
            principal.user_id, from_user_id,
        )
    return to_user_id


async def _send_error(ws: WebSocket, code: str, **extra: Any) -> None:
    await ws.send_text(
        WsOutbound(type=EventName.ERROR, data={"code": code, **extra}).model_dump_json()
    )
