"""State a chat screen renders from, wired to the socket and the cache."""
from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable

from direct_chat.client.api import ChatApi, ChatApiError
from direct_chat.client.cache import ConversationCache
from direct_chat.client.config import ClientSettings
from direct_chat.client.debounce import Debouncer, TypingNotifier
from direct_chat.client.inactivity import IdleDisconnector
from direct_chat.client.models import ChatMessage, ChatUser
from direct_chat.client.realtime import DISCONNECT, Ack, EventSocket
from direct_chat.domain.value_objects.enums import ACK_OK, EventName

logger = logging.getLogger(__name__)

_SUBSCRIBED = (
    EventName.ONLINE_USERS,
    EventName.BEGIN_TYPING,
    EventName.END_TYPING,
    EventName.NEW_MESSAGE,
    EventName.MESSAGE_DELIVERED,
    DISCONNECT,
)


class ChatViewModel:
    def __init__(
        self,
        cache: ConversationCache,
        api: ChatApi,
        socket: EventSocket,
        settings: ClientSettings,
        *,
        on_notice: Callable[[str], None] | None = None,
    ) -> None:
        self.cache = cache
        self._api = api
        self._socket = socket
        self._on_notice = on_notice

        self.online_users: list[str] = []
        self.typing_users: set[str] = set()
        self.users: list[ChatUser] = []
        self.is_sending = False
        self.is_loading = False
        self.notices: deque[str] = deque(maxlen=20)

        self._typing = TypingNotifier(
            self._emit_start_typing,
            self._emit_stop_typing,
            delay=settings.TYPING_DEBOUNCE_SECONDS,
        )
        self._search = Debouncer(settings.SEARCH_DEBOUNCE_SECONDS, self._run_search)
        self._idle = IdleDisconnector(settings.IDLE_DISCONNECT_SECONDS, socket.disconnect)

    @property
    def me(self) -> str:
        return self.cache.me

    @property
    def messages(self) -> list[ChatMessage]:
        return self.cache.messages

    @property
    def selected_user_id(self) -> str | None:
        return self.cache.selected_user_id

    # ------------------------------------------------------------------
    # Socket subscriptions
    # ------------------------------------------------------------------

    def subscribe(self) -> None:
        self._socket.on(EventName.ONLINE_USERS, self._on_online_users)
        self._socket.on(EventName.BEGIN_TYPING, self._on_begin_typing)
        self._socket.on(EventName.END_TYPING, self._on_end_typing)
        self._socket.on(EventName.NEW_MESSAGE, self._on_new_message)
        self._socket.on(EventName.MESSAGE_DELIVERED, self._on_message_delivered)
        self._socket.on(DISCONNECT, self._on_disconnect)

    async def connect(self) -> None:
        """Open the realtime connection with fresh presence and typing state.

        Also arms the idle timer, so a session with no input still times out.
        """
        self._reset_realtime_state()
        await self._socket.connect()
        self.record_activity()

    def unsubscribe(self) -> None:
        for event in _SUBSCRIBED:
            self._socket.off(event)

    async def _on_online_users(self, data: dict[str, Any], ack: Ack | None) -> None:
        user_ids = data.get("userIds")
        if not isinstance(user_ids, list):
            logger.warning("Malformed onlineUsers payload: %r", data)
            return
        self.online_users = [str(u) for u in user_ids]

    async def _on_begin_typing(self, data: dict[str, Any], ack: Ack | None) -> None:
        from_user_id = data.get("fromUserId")
        if isinstance(from_user_id, str):
            self.typing_users.add(from_user_id)

    async def _on_end_typing(self, data: dict[str, Any], ack: Ack | None) -> None:
        from_user_id = data.get("fromUserId")
        if isinstance(from_user_id, str):
            self.typing_users.discard(from_user_id)

    async def _on_new_message(self, data: dict[str, Any], ack: Ack | None) -> None:
        # The server only stamps delivery on an ok ack, so answer first.
        if ack is not None:
            await ack({"status": ACK_OK})
        self.cache.ingest_push(data)

    async def _on_message_delivered(self, data: dict[str, Any], ack: Ack | None) -> None:
        self.cache.ingest_delivery_confirmation(data)

    async def _on_disconnect(self, data: dict[str, Any], ack: Ack | None) -> None:
        # No endTyping or onlineUsers can arrive on a closed connection.
        self._reset_realtime_state()

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def select_user(self, user_id: str | None) -> None:
        self.record_activity()
        await self._typing.stop()
        self.cache.set_selected_conversation(user_id)
        if user_id is None:
            return

        self.is_loading = True
        try:
            await self.cache.load_conversation(user_id)
        except ChatApiError as exc:
            self._notify(exc.detail)
        finally:
            self.is_loading = False

    async def send_message(self, text: str | None = None, image_data: str | None = None) -> ChatMessage | None:
        to_user_id = self.selected_user_id
        if to_user_id is None:
            return None
        if not (text and text.strip()) and not image_data:
            return None

        self.record_activity()
        await self._typing.stop()
        self.is_sending = True
        try:
            message = await self._api.send_message(to_user_id, text=text, image_data=image_data)
        except ChatApiError as exc:
            self._notify(exc.detail)
            return None
        finally:
            self.is_sending = False

        self.cache.append_sent(message)
        return message

    async def on_input_changed(self, text: str, *, has_attachment: bool = False) -> None:
        self.record_activity()
        to_user_id = self.selected_user_id
        if to_user_id is None:
            return
        await self._typing.input_changed(to_user_id, text, has_attachment=has_attachment)

    def on_search_changed(self, term: str) -> None:
        self.record_activity()
        self._search.trigger(term.strip())

    async def refresh_users(self) -> None:
        try:
            self.users = await self._api.list_users()
        except ChatApiError as exc:
            self._notify(exc.detail)

    def record_activity(self) -> None:
        self._idle.touch()

    async def close(self) -> None:
        await self._typing.stop()
        self._search.cancel()
        self._idle.cancel()
        self.unsubscribe()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def sidebar_users(self, *, online_only: bool = False) -> list[ChatUser]:
        online = set(self.online_users)
        if online_only:
            return [u for u in self.users if u.id in online]
        # sorted() is stable, so server order is kept within each group.
        return sorted(self.users, key=lambda u: u.id not in online)

    def is_online(self, user_id: str) -> bool:
        return user_id in self.online_users

    def is_typing(self, user_id: str) -> bool:
        return user_id in self.typing_users

    def unread_badge(self, user_id: str) -> int:
        return self.cache.unread_count(user_id)

    def online_count(self) -> int:
        return sum(1 for u in set(self.online_users) if u != self.me)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _emit_start_typing(self, to_user_id: str) -> None:
        await self._socket.emit(EventName.START_TYPING, {"fromUserId": self.me, "toUserId": to_user_id})

    async def _emit_stop_typing(self, to_user_id: str) -> None:
        await self._socket.emit(EventName.STOP_TYPING, {"fromUserId": self.me, "toUserId": to_user_id})

    async def _run_search(self, term: str) -> None:
        if not term:
            await self.refresh_users()
            return
        try:
            self.users = await self._api.search_users(term)
        except ChatApiError as exc:
            self._notify(exc.detail)

    def _reset_realtime_state(self) -> None:
        self.online_users = []
        self.typing_users = set()

    def _notify(self, detail: str) -> None:
        logger.info("Notice: %s", detail)
        self.notices.append(detail)
        if self._on_notice is not None:
            self._on_notice(detail)
