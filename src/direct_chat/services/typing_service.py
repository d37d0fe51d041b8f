from __future__ import annotations

from direct_chat.application.ports.channel import EventChannel
from direct_chat.domain.value_objects.enums import EventName


async def start_typing(channel: EventChannel, from_user_id: str, to_user_id: str) -> bool:
    return await channel.emit_to(to_user_id, EventName.BEGIN_TYPING, {"fromUserId": from_user_id})


async def stop_typing(channel: EventChannel, from_user_id: str, to_user_id: str) -> bool:
    return await channel.emit_to(to_user_id, EventName.END_TYPING, {"fromUserId": from_user_id})
