from __future__ import annotations

from typing import Protocol

from direct_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: str) -> User | None: ...

    async def list_except(self, user_id: str) -> list[User]: ...

    async def search(self, query: str, *, exclude_id: str, limit: int = 20) -> list[User]: ...
