"""In-process presence registry: one live connection per user."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Maps a user id to its active connection handle.

    A new registration for the same user replaces the previous handle
    (last-connected-wins). Mutations return a snapshot of the online user ids
    taken right after the change, which is what gets broadcast.
    """

    def __init__(self) -> None:
        self._handles: dict[str, Any] = {}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def register(self, user_id: str, handle: Any) -> list[str]:
        previous = self._handles.get(user_id)
        if previous is not None and previous is not handle:
            logger.info("Replacing connection for %s", user_id)
        self._handles[user_id] = handle
        return self.online_users()

    def lookup(self, user_id: str) -> Any | None:
        return self._handles.get(user_id)

    def unregister(self, user_id: str, handle: Any | None = None) -> list[str]:
        """Remove the entry for ``user_id``.

        When ``handle`` is given, the entry is only removed if it still points
        at that handle, so a superseded connection closing late leaves the
        newer one registered.
        """
        current = self._handles.get(user_id)
        if current is None:
            return self.online_users()
        if handle is not None and current is not handle:
            logger.debug("Stale connection for %s closed, keeping newer one", user_id)
            return self.online_users()
        del self._handles[user_id]
        return self.online_users()

    def online_users(self) -> list[str]:
        return list(self._handles)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._handles.items())
