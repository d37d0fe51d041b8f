from __future__ import annotations

from dataclasses import dataclass

from direct_chat.domain.value_objects.ids import UserId


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: UserId
