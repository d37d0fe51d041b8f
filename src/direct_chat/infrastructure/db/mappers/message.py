from __future__ import annotations

from direct_chat.domain.entities.message import Message
from direct_chat.domain.value_objects.ids import UserId
from direct_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        sender_id=UserId(model.sender_id),
        receiver_id=UserId(model.receiver_id),
        text=model.text,
        image_url=model.image_url,
        created_at=model.created_at,
        delivered_at=model.delivered_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        text=entity.text,
        image_url=entity.image_url,
        created_at=entity.created_at,
        delivered_at=entity.delivered_at,
    )
