from __future__ import annotations

from typing import Any, Protocol

from direct_chat.application.dto.events import AckResult


class EventChannel(Protocol):
    def is_online(self, user_id: str) -> bool: ...

    async def emit_to(self, user_id: str, event: str, data: dict[str, Any]) -> bool: ...

    async def emit_to_with_ack(
        self,
        user_id: str,
        event: str,
        data: dict[str, Any],
        *,
        timeout: float,
    ) -> AckResult: ...

    async def broadcast(self, event: str, data: dict[str, Any]) -> None: ...
