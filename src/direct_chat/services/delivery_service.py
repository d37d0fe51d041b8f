"""Live push of a new message and the ack → delivered confirmation round-trip.

State machine for a single message::

    CREATED → PUSH_ATTEMPTED → ACKNOWLEDGED → DELIVERED_CONFIRMED
                     │
                     ├→ ACK_TIMED_OUT        (timeout, malformed or non-ok ack)
                     └→ NO_RECIPIENT_ONLINE  (receiver not connected)

``push_new_message`` returns the final state of the path it took. CREATED and
PUSH_ATTEMPTED only name the steps in between and are never returned.

Delivery is at-least-once and best-effort: nothing here retries, and a
message whose push is not acknowledged stays unconfirmed until the receiver
reads its history.
"""
from __future__ import annotations

import logging

from direct_chat.application.dto.message import message_to_payload
from direct_chat.application.ports.channel import EventChannel
from direct_chat.application.ports.clock import Clock
from direct_chat.application.uow import UoWFactory
from direct_chat.domain.entities.message import Message
from direct_chat.domain.events.message_delivered import MessageDelivered
from direct_chat.domain.value_objects.enums import AckStatus, DeliveryState, EventName

logger = logging.getLogger(__name__)


async def push_new_message(
    message: Message,
    channel: EventChannel,
    uow_factory: UoWFactory,
    clock: Clock,
    *,
    timeout: float,
) -> DeliveryState:
    receiver_id = message.receiver_id
    if not channel.is_online(receiver_id):
        logger.info("Receiver %s offline, message %s not pushed", receiver_id, message.id)
        return DeliveryState.NO_RECIPIENT_ONLINE

    logger.debug("Pushing message %s to %s", message.id, receiver_id)
    ack = await channel.emit_to_with_ack(
        receiver_id,
        EventName.NEW_MESSAGE,
        message_to_payload(message),
        timeout=timeout,
    )

    if ack.status == AckStatus.NO_RECIPIENT:
        logger.info("Receiver %s went offline before push of %s", receiver_id, message.id)
        return DeliveryState.NO_RECIPIENT_ONLINE
    if not ack.ok:
        if ack.acked:
            logger.warning("Message %s: unexpected ack from %s: %r", message.id, receiver_id, ack.data)
        return DeliveryState.ACK_TIMED_OUT

    delivered_at = clock.now()
    async with uow_factory() as uow:
        stamped = await uow.messages_w.mark_delivered(message.id, delivered_at)
        await uow.commit()

    if not stamped:
        # The receiver's history read confirmed it first and already notified.
        logger.debug("Message %s was already marked delivered", message.id)
        return DeliveryState.ACKNOWLEDGED

    logger.info("Message %s delivered to %s at %s", message.id, receiver_id, delivered_at.isoformat())
    event = MessageDelivered(
        message_id=message.id,
        sender_id=message.sender_id,
        receiver_id=receiver_id,
        delivered_at=delivered_at,
    )
    await channel.emit_to(event.sender_id, EventName.MESSAGE_DELIVERED, event.as_payload())
    return DeliveryState.DELIVERED_CONFIRMED
