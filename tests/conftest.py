"""Shared test fixtures."""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from direct_chat.application.dto.principal import Principal
from direct_chat.client.api import ChatApiError
from direct_chat.client.models import ChatMessage, ChatUser
from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.domain.value_objects.ids import UserId

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id=UserId("alice"))


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id=UserId("bob"))


def make_user(user_id: str, *, full_name: str | None = None, email: str | None = None) -> User:
    return User(
        id=UserId(user_id),
        full_name=full_name or user_id.title(),
        email=email or f"{user_id}@example.com",
        profile_pic=None,
        created_at=BASE_TIME,
    )


def make_message(
    *,
    sender_id: str = "alice",
    receiver_id: str = "bob",
    text: str | None = "hello",
    created_at: datetime | None = None,
    delivered_at: datetime | None = None,
    message_id: UUID | None = None,
) -> Message:
    return Message(
        id=message_id or uuid.uuid4(),
        sender_id=UserId(sender_id),
        receiver_id=UserId(receiver_id),
        text=text,
        image_url=None,
        created_at=created_at or BASE_TIME,
        delivered_at=delivered_at,
    )


class FixedClock:
    """Returns ``start`` and then steps forward by ``step`` on each call."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)) -> None:
        self._next = start
        self._step = step

    def now(self) -> datetime:
        current = self._next
        self._next = current + self._step
        return current


@dataclass
class FakeMessageReader:
    _messages: dict[UUID, Message] = field(default_factory=dict)

    async def list_between(self, user_a: str, user_b: str, *, since: datetime | None = None) -> list[Message]:
        found = [
            m for m in self._messages.values()
            if {m.sender_id, m.receiver_id} == {user_a, user_b}
            and (since is None or m.created_at >= since)
        ]
        return sorted(found, key=lambda m: m.sort_key)

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return self._messages.get(message_id)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    mark_calls: list[UUID] = field(default_factory=list)

    async def add(self, message: Message) -> Message:
        self._reader._messages[message.id] = message
        return message

    async def mark_delivered(self, message_id: UUID, delivered_at: datetime) -> bool:
        self.mark_calls.append(message_id)
        msg = self._reader._messages.get(message_id)
        if msg is None or msg.delivered_at is not None:
            return False
        self._reader._messages[message_id] = msg.mark_delivered(delivered_at)
        return True


@dataclass
class FakeUserReader:
    _users: dict[str, User] = field(default_factory=dict)

    def add(self, *users: User) -> None:
        for user in users:
            self._users[user.id] = user

    async def get_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def list_except(self, user_id: str) -> list[User]:
        return [u for u in self._users.values() if u.id != user_id]

    async def search(self, query: str, *, exclude_id: str, limit: int = 20) -> list[User]:
        q = query.lower()
        return [
            u for u in self._users.values()
            if u.id != exclude_id and (q in u.full_name.lower() or q in u.email.lower())
        ][:limit]


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    users: FakeUserReader = field(default_factory=FakeUserReader)
    _committed: bool = False
    commits: int = 0

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, *exc: object) -> None:
        pass

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True
        self.commits += 1

    async def rollback(self) -> None:
        pass


def uow_factory_for(uow: FakeUoW):
    """A ``UoWFactory`` that hands out the same in-memory unit of work."""
    def factory() -> FakeUoW:
        return uow
    return factory


class FakeSocket:
    """Server-side connection stand-in recording every frame it is sent."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed: int | None = None
        self._fail = fail

    async def send_text(self, data: str) -> None:
        if self._fail:
            raise RuntimeError("connection lost")
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = code

    def frames(self, event: str) -> list[dict[str, Any]]:
        return [f for f in self.sent if f["type"] == event]


@dataclass
class FakeMediaStore:
    url: str = "https://media.example.com/img/1.png"
    uploads: list[str] = field(default_factory=list)

    async def upload(self, data: str) -> str:
        self.uploads.append(data)
        return self.url


# ----------------------------------------------------------------------
# Client-side fakes
# ----------------------------------------------------------------------


def make_chat_message(
    message_id: str,
    *,
    sender_id: str = "bob",
    receiver_id: str = "alice",
    at: int = 0,
    text: str = "hi",
    delivered_at: datetime | None = None,
) -> ChatMessage:
    """Client-side message created ``at`` seconds after ``BASE_TIME``."""
    return ChatMessage(
        id=message_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        text=text,
        created_at=BASE_TIME + timedelta(seconds=at),
        delivered_at=delivered_at,
    )


class FakeChatApi:
    """In-memory stand-in for ``ChatApiClient``."""

    def __init__(self) -> None:
        self.history: dict[str, list[ChatMessage]] = {}
        self.users: list[ChatUser] = []
        self.fail_with: ChatApiError | None = None
        self.calls: list[tuple[str, Any]] = []
        self._sent = 0

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def fetch_conversation(self, other_user_id: str) -> list[ChatMessage]:
        self.calls.append(("fetch", other_user_id))
        self._check()
        return list(self.history.get(other_user_id, []))

    async def fetch_conversation_since(self, other_user_id: str, since: datetime) -> list[ChatMessage]:
        self.calls.append(("fetch_since", (other_user_id, since)))
        self._check()
        return [m for m in self.history.get(other_user_id, []) if m.created_at >= since]

    async def send_message(
        self, other_user_id: str, *, text: str | None = None, image_data: str | None = None,
    ) -> ChatMessage:
        self.calls.append(("send", other_user_id))
        self._check()
        self._sent += 1
        return ChatMessage(
            id=f"sent-{self._sent}",
            sender_id="alice",
            receiver_id=other_user_id,
            text=text,
            image_url="https://media.example.com/x.png" if image_data else None,
            created_at=BASE_TIME + timedelta(hours=1, seconds=self._sent),
        )

    async def list_users(self) -> list[ChatUser]:
        self.calls.append(("list_users", None))
        self._check()
        return list(self.users)

    async def search_users(self, query: str) -> list[ChatUser]:
        self.calls.append(("search", query))
        self._check()
        return [u for u in self.users if query.lower() in u.full_name.lower()]


class FakeEventSocket:
    """Client ``EventSocket`` that records emissions and lets tests push frames."""

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.emitted: list[tuple[str, dict[str, Any]]] = []
        self.acks: list[dict[str, Any]] = []
        self.disconnected = False
        self.connects = 0

    def on(self, event: str, handler: Any) -> None:
        self.handlers[event] = handler

    def off(self, event: str) -> None:
        self.handlers.pop(event, None)

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        self.emitted.append((event, data))

    async def connect(self) -> None:
        self.connects += 1
        self.disconnected = False

    async def disconnect(self) -> None:
        self.disconnected = True
        handler = self.handlers.get("disconnect")
        if handler is not None:
            await handler({}, None)

    async def push(self, event: str, data: dict[str, Any], *, with_ack: bool = False) -> None:
        async def ack(reply: dict[str, Any]) -> None:
            self.acks.append(reply)

        await self.handlers[event](data, ack if with_ack else None)

    def emitted_types(self) -> list[str]:
        return [event for event, _ in self.emitted]
