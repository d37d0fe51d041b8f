from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from direct_chat.application.repositories.message import MessageReader, MessageWriter
from direct_chat.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    messages: MessageReader
    messages_w: MessageWriter
    users: UserReader

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


# Opens a fresh unit of work for code running outside a request scope.
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
