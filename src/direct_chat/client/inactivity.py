from __future__ import annotations

import logging
from typing import Awaitable, Callable

from direct_chat.client.debounce import Debouncer

logger = logging.getLogger(__name__)


class IdleDisconnector:
    """Closes the realtime connection after a stretch without user activity."""

    def __init__(self, timeout: float, disconnect: Callable[[], Awaitable[None]]) -> None:
        self._disconnect = disconnect
        self._timer = Debouncer(timeout, self._on_idle)

    def touch(self) -> None:
        self._timer.trigger()

    def cancel(self) -> None:
        self._timer.cancel()

    async def _on_idle(self) -> None:
        logger.info("User idle, disconnecting socket")
        await self._disconnect()
