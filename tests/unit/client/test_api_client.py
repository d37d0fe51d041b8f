from __future__ import annotations

import json

import httpx
import pytest

from direct_chat.client.api import ChatApiClient, ChatApiError
from tests.conftest import BASE_TIME, make_chat_message


def _client(handler) -> ChatApiClient:
    return ChatApiClient(
        "http://chat.test/api/v1",
        "token-1",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetch_since_sends_cursor_and_auth():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[make_chat_message("m1").to_wire()])

    async with _client(handler) as client:
        messages = await client.fetch_conversation_since("bob", BASE_TIME)

    assert [m.id for m in messages] == ["m1"]
    request = seen[0]
    assert request.url.path == "/api/v1/conversation"
    assert request.url.params["otherUserId"] == "bob"
    assert request.url.params["since"] == BASE_TIME.isoformat()
    assert request.headers["Authorization"] == "Bearer token-1"


@pytest.mark.asyncio
async def test_send_message_posts_camel_case_body():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        msg = make_chat_message("s1", sender_id="alice", receiver_id="bob")
        return httpx.Response(201, json=msg.to_wire())

    async with _client(handler) as client:
        sent = await client.send_message("bob", text="hi")

    assert sent.id == "s1"
    assert bodies == [{"text": "hi", "imageData": None}]


@pytest.mark.asyncio
async def test_error_detail_is_surfaced():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Receiver not found"})

    async with _client(handler) as client:
        with pytest.raises(ChatApiError) as exc_info:
            await client.send_message("ghost", text="hi")

    assert exc_info.value.detail == "Receiver not found"
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_malformed_payload_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": "x"}])

    async with _client(handler) as client:
        with pytest.raises(ChatApiError):
            await client.fetch_conversation("bob")


@pytest.mark.asyncio
async def test_network_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        with pytest.raises(ChatApiError):
            await client.list_users()
