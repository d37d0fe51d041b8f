from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from direct_chat.domain.value_objects.enums import ACK_OK, AckStatus


@dataclass(frozen=True, slots=True)
class AckResult:
    """Outcome of an emission that waited for the receiver's acknowledgement."""

    status: AckStatus
    data: Any = None

    @property
    def acked(self) -> bool:
        return self.status == AckStatus.ACKED

    @property
    def ok(self) -> bool:
        """True only for an acknowledgement carrying ``{"status": "ok"}``."""
        return (
            self.acked
            and isinstance(self.data, dict)
            and self.data.get("status") == ACK_OK
        )
