"""REST calls the client makes against the chat service."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from direct_chat.client.models import ChatMessage, ChatUser

logger = logging.getLogger(__name__)

_messages = TypeAdapter(list[ChatMessage])
_users = TypeAdapter(list[ChatUser])


class ChatApiError(Exception):
    """A request failed; ``detail`` is suitable for showing to the user."""

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class MessageApi(Protocol):
    async def fetch_conversation(self, other_user_id: str) -> list[ChatMessage]: ...

    async def fetch_conversation_since(
        self, other_user_id: str, since: datetime,
    ) -> list[ChatMessage]: ...


class ChatApi(MessageApi, Protocol):
    async def send_message(
        self,
        other_user_id: str,
        *,
        text: str | None = None,
        image_data: str | None = None,
    ) -> ChatMessage: ...

    async def list_users(self) -> list[ChatUser]: ...

    async def search_users(self, query: str) -> list[ChatUser]: ...


class ChatApiClient:
    """httpx wrapper; every failure surfaces as ``ChatApiError``."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ChatApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ChatApiError("Network error, please try again") from exc

        if resp.is_error:
            raise ChatApiError(_error_detail(resp), status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise ChatApiError("Malformed server response", status_code=resp.status_code) from exc

    async def fetch_conversation(self, other_user_id: str) -> list[ChatMessage]:
        data = await self._request("GET", f"/conversation/{other_user_id}")
        return _parse(_messages, data)

    async def fetch_conversation_since(
        self, other_user_id: str, since: datetime,
    ) -> list[ChatMessage]:
        data = await self._request(
            "GET",
            "/conversation",
            params={"otherUserId": other_user_id, "since": since.isoformat()},
        )
        return _parse(_messages, data)

    async def send_message(
        self,
        other_user_id: str,
        *,
        text: str | None = None,
        image_data: str | None = None,
    ) -> ChatMessage:
        body = {"text": text, "imageData": image_data}
        data = await self._request("POST", f"/conversation/{other_user_id}", json=body)
        try:
            return ChatMessage.model_validate(data)
        except ValidationError as exc:
            raise ChatApiError("Malformed server response") from exc

    async def list_users(self) -> list[ChatUser]:
        return _parse(_users, await self._request("GET", "/users"))

    async def search_users(self, query: str) -> list[ChatUser]:
        data = await self._request("GET", "/users/search", params={"query": query})
        return _parse(_users, data)


def _parse(adapter: TypeAdapter, data: Any) -> Any:
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ChatApiError("Malformed server response") from exc


def _error_detail(resp: httpx.Response) -> str:
    try:
        detail = resp.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    if isinstance(detail, str) and detail:
        return detail
    return f"Request failed ({resp.status_code})"
