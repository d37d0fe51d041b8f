from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SendMessageRequest(BaseModel):
    text: str | None = None
    image_data: str | None = None  # data URI, uploaded to the media host

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    id: UUID
    sender_id: str
    receiver_id: str
    text: str | None
    image_url: str | None
    created_at: datetime
    delivered_at: datetime | None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
