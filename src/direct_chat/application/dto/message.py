from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from direct_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    receiver_id: str
    text: str | None = None
    image_data: str | None = None


def message_to_payload(message: Message) -> dict[str, Any]:
    """Serialize a message the way REST responses and ``newMessage`` frames carry it."""
    return {
        "id": str(message.id),
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "text": message.text,
        "imageUrl": message.image_url,
        "createdAt": message.created_at.isoformat(),
        "deliveredAt": message.delivered_at.isoformat() if message.delivered_at else None,
    }
