from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from direct_chat.domain.value_objects.ids import UserId


@dataclass(frozen=True, slots=True)
class User:
    id: UserId
    full_name: str
    email: str
    profile_pic: str | None
    created_at: datetime
