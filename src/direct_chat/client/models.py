"""Client-side views of the server payloads."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    text: str | None = None
    image_url: str | None = None
    created_at: datetime
    delivered_at: datetime | None = None

    model_config = _WIRE

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return self.created_at, self.id

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def other_party(self, me: str) -> str:
        return self.receiver_id if self.sender_id == me else self.sender_id

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DeliveryReceipt(BaseModel):
    message_id: str
    receiver_id: str
    delivered_at: datetime

    model_config = _WIRE


class ChatUser(BaseModel):
    id: str
    full_name: str
    email: str = ""
    profile_pic: str | None = None

    model_config = _WIRE
