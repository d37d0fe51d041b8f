from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from direct_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_between(
        self,
        user_a: str,
        user_b: str,
        *,
        since: datetime | None = None,
    ) -> list[Message]:
        """Messages exchanged by the two users, oldest first, ``created_at >= since``."""
        ...

    async def get_by_id(self, message_id: UUID) -> Message | None: ...


class MessageWriter(Protocol):
    async def add(self, message: Message) -> Message: ...

    async def mark_delivered(self, message_id: UUID, delivered_at: datetime) -> bool:
        """Set delivered_at if still unset. Return True when this call set it."""
        ...
