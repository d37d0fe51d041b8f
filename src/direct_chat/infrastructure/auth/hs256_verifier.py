from __future__ import annotations

import jwt

from direct_chat.application.dto.principal import Principal
from direct_chat.domain.value_objects.ids import UserId


def principal_from_claims(payload: dict) -> Principal:
    return Principal(user_id=UserId(str(payload["sub"])))


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        return principal_from_claims(payload)
