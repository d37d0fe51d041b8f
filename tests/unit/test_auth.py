from __future__ import annotations

import dataclasses

import jwt
import pytest

from direct_chat.application.dto.principal import Principal
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier, principal_from_claims

SECRET = "unit-test-secret-at-least-32-bytes-long"


@pytest.mark.asyncio
async def test_hs256_token_yields_principal():
    token = jwt.encode({"sub": "alice", "roles": ["admin"]}, SECRET, algorithm="HS256")

    principal = await HS256Verifier(SECRET).verify(token)

    assert principal == Principal(user_id="alice")
    assert [f.name for f in dataclasses.fields(principal)] == ["user_id"]


@pytest.mark.asyncio
async def test_wrong_secret_is_rejected():
    token = jwt.encode({"sub": "alice"}, "some-other-secret-at-least-32-bytes-long", algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await HS256Verifier(SECRET).verify(token)


def test_numeric_subject_becomes_string_id():
    assert principal_from_claims({"sub": 42}).user_id == "42"
