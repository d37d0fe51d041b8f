from __future__ import annotations

import pytest

from direct_chat.infrastructure.ws.channel import DeliveryChannel
from direct_chat.services import typing_service
from tests.conftest import FakeSocket


@pytest.mark.asyncio
async def test_typing_is_relayed_to_target_only():
    channel = DeliveryChannel()
    alice, bob = FakeSocket(), FakeSocket()
    await channel.attach("alice", alice)
    await channel.attach("bob", bob)

    assert await typing_service.start_typing(channel, "alice", "bob") is True
    assert await typing_service.stop_typing(channel, "alice", "bob") is True

    assert bob.frames("beginTyping")[0]["data"] == {"fromUserId": "alice"}
    assert bob.frames("endTyping")[0]["data"] == {"fromUserId": "alice"}
    assert alice.frames("beginTyping") == []


@pytest.mark.asyncio
async def test_typing_to_offline_user_is_dropped():
    channel = DeliveryChannel()

    assert await typing_service.start_typing(channel, "alice", "bob") is False
