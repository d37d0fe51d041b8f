"""Local conversation cache and its reconciliation with the server.

The persisted cache is the point of serialization: every operation reads the
stored list, changes it and writes it back. Keys:

* ``chat_<userId>`` – messages exchanged with ``userId``, sorted by
  ``(created_at, id)`` and unique by id.
* ``unreadCounts`` – ``{userId: count}`` for conversations that are not open.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from direct_chat.client.api import ChatApiError, MessageApi
from direct_chat.client.models import ChatMessage, DeliveryReceipt
from direct_chat.client.storage import LocalStorage

logger = logging.getLogger(__name__)

UNREAD_KEY = "unreadCounts"


def conversation_key(user_id: str) -> str:
    return f"chat_{user_id}"


class PushOutcome(StrEnum):
    APPENDED = "appended"
    DUPLICATE = "duplicate"
    UNREAD = "unread"
    IGNORED = "ignored"
    MALFORMED = "malformed"


def merge_messages(local: list[ChatMessage], fetched: list[ChatMessage]) -> list[ChatMessage]:
    """Union of both lists by id, sorted by creation time.

    Local copies win, except that a delivered stamp is never lost.
    """
    by_id = {m.id: m for m in local}
    for msg in fetched:
        known = by_id.get(msg.id)
        if known is None or (known.delivered_at is None and msg.delivered_at is not None):
            by_id[msg.id] = msg
    return sorted(by_id.values(), key=lambda m: m.sort_key)


class ConversationCache:
    """Client state for the open conversation plus persisted per-user history."""

    def __init__(self, storage: LocalStorage, api: MessageApi, me: str) -> None:
        self._storage = storage
        self._api = api
        self.me = me
        self.messages: list[ChatMessage] = []
        self.selected_user_id: str | None = None
        self.unread_counts: dict[str, int] = self._load_unread()
        # Conversations reconciled with the server during this session.
        self._synced: set[str] = set()
        self._counted_unread: set[str] = set()

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def read_cached(self, user_id: str) -> list[ChatMessage] | None:
        raw = self._storage.get_json(conversation_key(user_id))
        if raw is None:
            return None
        if not isinstance(raw, list):
            logger.warning("Cache for %s is not a list, ignoring it", user_id)
            return None
        messages: list[ChatMessage] = []
        for item in raw:
            try:
                messages.append(ChatMessage.model_validate(item))
            except ValidationError:
                logger.warning("Dropping unreadable cached message for %s", user_id)
        return messages

    def _write_cached(self, user_id: str, messages: list[ChatMessage]) -> None:
        self._storage.set_json(conversation_key(user_id), [m.to_wire() for m in messages])

    def _load_unread(self) -> dict[str, int]:
        raw = self._storage.get_json(UNREAD_KEY)
        if not isinstance(raw, dict):
            return {}
        counts: dict[str, int] = {}
        for key, value in raw.items():
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                counts[str(key)] = value
        return counts

    def _save_unread(self) -> None:
        try:
            self._storage.set_json(UNREAD_KEY, self.unread_counts)
        except OSError:
            logger.exception("Failed to persist unread counts")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load_conversation(self, user_id: str) -> list[ChatMessage]:
        """Show cached history at once, then merge in what the server has.

        Raises ``ChatApiError`` when the fetch fails, after falling back to the
        cached history if nothing else is on screen.
        """
        local = self.read_cached(user_id) or []
        if local and self._is_open(user_id):
            self.messages = list(local)

        try:
            if local:
                latest = local[-1].created_at
                fetched = await self._api.fetch_conversation_since(user_id, latest)
            else:
                fetched = await self._api.fetch_conversation(user_id)
        except ChatApiError:
            if local and not self.messages and self._is_open(user_id):
                self.messages = list(local)
            raise

        # Re-read: receipts may have landed while the fetch was out.
        current = self.read_cached(user_id) or local
        merged = merge_messages(current, fetched)
        self._write_cached(user_id, merged)
        self._synced.add(user_id)
        if self._is_open(user_id):
            self.messages = merge_messages(merged, self.messages)
        else:
            logger.debug("Conversation switched during load of %s", user_id)
        return merged

    def append_sent(self, message: ChatMessage) -> None:
        """Optimistically add our own just-sent message, without re-sorting."""
        user_id = message.other_party(self.me)
        if self._is_open(user_id) and all(m.id != message.id for m in self.messages):
            self.messages = [*self.messages, message]

        if user_id not in self._synced:
            return
        cached = self.read_cached(user_id) or []
        if all(m.id != message.id for m in cached):
            cached.append(message)
            self._write_cached(user_id, cached)

    def ingest_push(self, payload: Any) -> PushOutcome:
        """Apply a ``newMessage`` push from the server."""
        try:
            message = ChatMessage.model_validate(payload)
        except ValidationError:
            logger.warning("Dropping malformed pushed message: %r", payload)
            return PushOutcome.MALFORMED

        selected = self.selected_user_id
        if selected is not None and self._is_between(message, self.me, selected):
            return self._append_to_open(selected, message)

        if not message.involves(self.me):
            logger.debug("Ignoring push %s not involving %s", message.id, self.me)
            return PushOutcome.IGNORED

        other = message.other_party(self.me)
        if other == self.me:
            return PushOutcome.IGNORED
        if message.id in self._counted_unread:
            return PushOutcome.DUPLICATE

        self._counted_unread.add(message.id)
        self.unread_counts[other] = self.unread_counts.get(other, 0) + 1
        self._save_unread()
        logger.debug("Unread for %s is now %d", other, self.unread_counts[other])
        return PushOutcome.UNREAD

    def ingest_delivery_confirmation(self, payload: Any) -> bool:
        """Stamp ``deliveredAt`` on a message we sent. Returns True if it changed."""
        try:
            receipt = DeliveryReceipt.model_validate(payload)
        except ValidationError:
            logger.warning("Dropping malformed delivery receipt: %r", payload)
            return False

        cached = self.read_cached(receipt.receiver_id)
        if not cached:
            return False
        for index, msg in enumerate(cached):
            if msg.id == receipt.message_id:
                break
        else:
            return False
        if msg.delivered_at is not None:
            return False

        cached[index] = msg.model_copy(update={"delivered_at": receipt.delivered_at})
        self._write_cached(receipt.receiver_id, cached)
        if self.selected_user_id == receipt.receiver_id:
            self.messages = [
                m.model_copy(update={"delivered_at": receipt.delivered_at})
                if m.id == receipt.message_id and m.delivered_at is None
                else m
                for m in self.messages
            ]
        return True

    def set_selected_conversation(self, user_id: str | None) -> None:
        if user_id != self.selected_user_id:
            self.messages = []
        self.selected_user_id = user_id
        if user_id is None:
            return
        self.unread_counts[user_id] = 0
        self._save_unread()

    def unread_count(self, user_id: str) -> int:
        return self.unread_counts.get(user_id, 0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_open(self, user_id: str) -> bool:
        return self.selected_user_id is None or self.selected_user_id == user_id

    @staticmethod
    def _is_between(message: ChatMessage, me: str, other: str) -> bool:
        return (message.sender_id == other and message.receiver_id == me) or (
            message.sender_id == me and message.receiver_id == other
        )

    def _append_to_open(self, user_id: str, message: ChatMessage) -> PushOutcome:
        if any(m.id == message.id for m in self.messages):
            logger.debug("Duplicate push %s for open conversation", message.id)
            return PushOutcome.DUPLICATE

        self.messages = sorted([*self.messages, message], key=lambda m: m.sort_key)
        # Only extend caches already reconciled this session, so a later
        # since-fetch does not skip history that was never downloaded.
        if user_id not in self._synced:
            return PushOutcome.APPENDED
        cached = self.read_cached(user_id) or []
        if all(m.id != message.id for m in cached):
            cached.append(message)
            cached.sort(key=lambda m: m.sort_key)
            self._write_cached(user_id, cached)
        return PushOutcome.APPENDED
