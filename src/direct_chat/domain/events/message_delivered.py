from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class MessageDelivered:
    message_id: UUID
    sender_id: str
    receiver_id: str
    delivered_at: datetime

    def as_payload(self) -> dict[str, Any]:
        """Wire shape of the ``messageDelivered`` event sent to the sender."""
        return {
            "messageId": str(self.message_id),
            "receiverId": self.receiver_id,
            "deliveredAt": self.delivered_at.isoformat(),
        }
