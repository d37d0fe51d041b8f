from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from direct_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from direct_chat.api.middleware.metrics import RequestTimingMiddleware
from direct_chat.api.v1.routers import health, messages, users, ws
from direct_chat.application.exceptions import (
    MediaUploadError,
    NotFoundError,
    ValidationError,
)
from direct_chat.application.ports.clock import SystemClock
from direct_chat.config import settings
from direct_chat.infrastructure.db.session import engine
from direct_chat.infrastructure.ws.channel import DeliveryChannel
from direct_chat.infrastructure.ws.presence import PresenceRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Chat service started (ack timeout=%.2fs)", settings.ACK_TIMEOUT_SECONDS)

    yield

    await app.state.channel.shutdown()
    logger.info("Realtime connections closed")

    await engine.dispose()
    logger.info("Database pool disposed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Direct Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Process-wide realtime state, owned by the app instance.
    app.state.channel = DeliveryChannel(PresenceRegistry())
    app.state.clock = SystemClock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(MediaUploadError)
    async def _media(_req: Request, exc: MediaUploadError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": exc.detail})
