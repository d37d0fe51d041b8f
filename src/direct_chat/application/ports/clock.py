from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

_TICK = timedelta(microseconds=1)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock that never repeats or goes backwards within the process.

    Creation timestamps drive conversation ordering, so two messages created
    in the same microsecond (or across a clock step back) still get distinct,
    increasing values.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self) -> datetime:
        current = datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + _TICK
        self._last = current
        return current
