"""Cancellable quiet-period timers on the asyncio loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Calls ``callback`` once ``delay`` seconds pass without another trigger.

    Each ``trigger`` cancels the pending call and arms a new one.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[None]]) -> None:
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._task = asyncio.create_task(self._fire(args))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fire(self, args: tuple[Any, ...]) -> None:
        await asyncio.sleep(self._delay)
        if self._task is asyncio.current_task():
            self._task = None
        try:
            await self._callback(*args)
        except Exception:
            logger.exception("Debounced callback failed")


class TypingNotifier:
    """Turns keystrokes into one startTyping and one trailing stopTyping.

    The first non-empty input emits start immediately and arms the stop
    timer; further input only re-arms it. Stop goes out when the timer
    expires, the input is cleared, or ``stop`` is called (submit, switching
    conversation, closing the view).
    """

    def __init__(
        self,
        emit_start: Callable[[str], Awaitable[None]],
        emit_stop: Callable[[str], Awaitable[None]],
        *,
        delay: float = 1.0,
    ) -> None:
        self._emit_start = emit_start
        self._emit_stop = emit_stop
        self._timer = Debouncer(delay, self._expire)
        self._target: str | None = None

    @property
    def active(self) -> bool:
        return self._timer.pending

    async def input_changed(self, to_user_id: str, text: str, *, has_attachment: bool = False) -> None:
        if not text.strip() and not has_attachment:
            await self.stop()
            return
        if self.active and self._target != to_user_id:
            await self.stop()

        starting = not self.active
        self._target = to_user_id
        self._timer.trigger()
        if starting:
            await self._emit_start(to_user_id)

    async def stop(self) -> None:
        if not self.active:
            return
        self._timer.cancel()
        target, self._target = self._target, None
        if target is not None:
            await self._emit_stop(target)

    async def _expire(self) -> None:
        target, self._target = self._target, None
        if target is not None:
            await self._emit_stop(target)
