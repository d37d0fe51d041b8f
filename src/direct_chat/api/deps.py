"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from direct_chat.application.dto.principal import Principal
from direct_chat.application.ports.auth import TokenVerifier
from direct_chat.application.ports.clock import Clock
from direct_chat.application.ports.media import MediaStore
from direct_chat.application.uow import UoWFactory
from direct_chat.config import settings
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from direct_chat.infrastructure.auth.jwks_verifier import JWKSVerifier
from direct_chat.infrastructure.db.uow import SqlAlchemyUoW, open_uow
from direct_chat.infrastructure.media.http_media_store import HttpMediaStore
from direct_chat.infrastructure.ws.channel import DeliveryChannel

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with open_uow() as uow:
        yield uow


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_uow_factory() -> UoWFactory:
    return open_uow


UoWFactoryDep = Annotated[UoWFactory, Depends(get_uow_factory)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
) -> Principal:
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def get_channel(request: Request) -> DeliveryChannel:
    return request.app.state.channel


ChannelDep = Annotated[DeliveryChannel, Depends(get_channel)]


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


ClockDep = Annotated[Clock, Depends(get_clock)]


def get_media_store() -> MediaStore:
    return HttpMediaStore(
        settings.MEDIA_UPLOAD_URL,
        settings.MEDIA_API_KEY,
        timeout=settings.MEDIA_TIMEOUT_SECONDS,
    )


MediaStoreDep = Annotated[MediaStore, Depends(get_media_store)]
