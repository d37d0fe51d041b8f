from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID

from direct_chat.domain.value_objects.ids import UserId


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: UserId
    receiver_id: UserId
    text: str | None
    image_url: str | None
    created_at: datetime
    delivered_at: datetime | None = None

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return self.created_at, str(self.id)

    @property
    def is_delivered(self) -> bool:
        return self.delivered_at is not None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def mark_delivered(self, at: datetime) -> Message:
        """Return a copy stamped as delivered; the first stamp wins."""
        if self.delivered_at is not None:
            return self
        return replace(self, delivered_at=at)
