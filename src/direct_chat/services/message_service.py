from __future__ import annotations

import logging
import uuid
from datetime import datetime

from direct_chat.application.dto.message import SendMessageDTO
from direct_chat.application.dto.principal import Principal
from direct_chat.application.exceptions import NotFoundError, ValidationError
from direct_chat.application.ports.channel import EventChannel
from direct_chat.application.ports.clock import Clock
from direct_chat.application.ports.media import MediaStore
from direct_chat.application.uow import UnitOfWork
from direct_chat.domain.entities.message import Message
from direct_chat.domain.events.message_delivered import MessageDelivered
from direct_chat.domain.value_objects.enums import EventName

logger = logging.getLogger(__name__)


async def send_message(
    principal: Principal,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    media: MediaStore,
    clock: Clock,
) -> Message:
    """Persist a direct message from the caller to ``dto.receiver_id``.

    Delivery to the receiver is not attempted here; the caller schedules
    ``delivery_service.push_new_message`` once the message is committed.
    """
    text = dto.text.strip() if dto.text else None
    if not text and not dto.image_data:
        raise ValidationError("Message needs text or an image")

    receiver = await uow.users.get_by_id(dto.receiver_id)
    if receiver is None:
        raise NotFoundError("Receiver not found")

    image_url = await media.upload(dto.image_data) if dto.image_data else None

    msg = Message(
        id=uuid.uuid4(),
        sender_id=principal.user_id,
        receiver_id=receiver.id,
        text=text or None,
        image_url=image_url,
        created_at=clock.now(),
    )
    msg = await uow.messages_w.add(msg)
    await uow.commit()
    logger.info("Message %s stored (%s -> %s)", msg.id, msg.sender_id, msg.receiver_id)
    return msg


async def list_conversation(
    principal: Principal,
    other_user_id: str,
    since: datetime | None,
    uow: UnitOfWork,
    channel: EventChannel,
    clock: Clock,
) -> list[Message]:
    """Return the conversation with ``other_user_id``, oldest first.

    Reading history counts as delivery: messages addressed to the caller that
    were never confirmed are stamped now and their senders notified.
    """
    messages = await uow.messages.list_between(
        principal.user_id, other_user_id, since=since,
    )

    now = clock.now()
    stamped: list[Message] = []
    result: list[Message] = []
    for msg in messages:
        if msg.receiver_id == principal.user_id and not msg.is_delivered:
            if await uow.messages_w.mark_delivered(msg.id, now):
                msg = msg.mark_delivered(now)
                stamped.append(msg)
        result.append(msg)

    if stamped:
        await uow.commit()
        logger.info(
            "Stamped %d message(s) delivered on history read by %s",
            len(stamped), principal.user_id,
        )
        for msg in stamped:
            event = MessageDelivered(
                message_id=msg.id,
                sender_id=msg.sender_id,
                receiver_id=msg.receiver_id,
                delivered_at=now,
            )
            await channel.emit_to(event.sender_id, EventName.MESSAGE_DELIVERED, event.as_payload())

    return result
