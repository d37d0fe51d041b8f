from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Query

from direct_chat.api.deps import (
    ChannelDep,
    ClockDep,
    CurrentPrincipal,
    MediaStoreDep,
    UoWDep,
    UoWFactoryDep,
)
from direct_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from direct_chat.application.dto.message import SendMessageDTO
from direct_chat.config import settings
from direct_chat.services import delivery_service, message_service

router = APIRouter(prefix="/api/v1/conversation", tags=["messages"])


@router.get("", response_model=list[MessageResponse])
async def list_messages_since(
    principal: CurrentPrincipal,
    uow: UoWDep,
    channel: ChannelDep,
    clock: ClockDep,
    other_user_id: str = Query(..., alias="otherUserId"),
    since: datetime | None = Query(None),
) -> list[MessageResponse]:
    messages = await message_service.list_conversation(
        principal, other_user_id, since, uow, channel, clock,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.get("/{other_user_id}", response_model=list[MessageResponse])
async def list_messages(
    other_user_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
    channel: ChannelDep,
    clock: ClockDep,
) -> list[MessageResponse]:
    messages = await message_service.list_conversation(
        principal, other_user_id, None, uow, channel, clock,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{other_user_id}", response_model=MessageResponse, status_code=201)
async def send_message(
    other_user_id: str,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    uow_factory: UoWFactoryDep,
    channel: ChannelDep,
    clock: ClockDep,
    media: MediaStoreDep,
    background: BackgroundTasks,
) -> MessageResponse:
    msg = await message_service.send_message(
        principal,
        SendMessageDTO(receiver_id=other_user_id, text=body.text, image_data=body.image_data),
        uow,
        media,
        clock,
    )
    background.add_task(
        delivery_service.push_new_message,
        msg,
        channel,
        uow_factory,
        clock,
        timeout=settings.ACK_TIMEOUT_SECONDS,
    )
    return MessageResponse.model_validate(msg, from_attributes=True)
