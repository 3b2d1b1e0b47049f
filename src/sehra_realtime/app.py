from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sehra_realtime.api.deps import get_verifier
from sehra_realtime.api.middleware.request_context import RequestContextMiddleware
from sehra_realtime.api.v1.routers import chat, health, messages, ws
from sehra_realtime.application.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from sehra_realtime.config import settings
from sehra_realtime.infrastructure.bus.fanout import RedisFanout, deliver_from_bus
from sehra_realtime.infrastructure.bus.redis_pubsub import (
    RedisPubSubPublisher,
    RedisPubSubSubscriber,
)
from sehra_realtime.infrastructure.db.uow import session_uow
from sehra_realtime.infrastructure.ws.gateway import RealtimeGateway
from sehra_realtime.infrastructure.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle.

    The bus subscriber always runs: the assignment worker publishes on the
    shared channel whatever the fan-out mode. In ``redis`` mode the gateway
    pushes through that channel too instead of straight to local connections.
    """
    gateway: RealtimeGateway = app.state.gateway
    app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    logger.info("Redis connection pool created")

    async def _on_bus_event(event: str, envelope: dict[str, Any]) -> None:
        await deliver_from_bus(gateway.manager, event, envelope)

    subscriber = RedisPubSubSubscriber(
        app.state.redis, settings.REDIS_PUBSUB_CHANNEL, _on_bus_event,
    )
    await subscriber.start()
    if settings.FANOUT_MODE == "redis":
        gateway.fanout = RedisFanout(
            RedisPubSubPublisher(app.state.redis), settings.REDIS_PUBSUB_CHANNEL,
        )

    logger.info("Realtime gateway ready (fanout=%s, path=%s)", settings.FANOUT_MODE, settings.WS_PATH)
    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sehra Realtime",
        version="0.1.0",
        lifespan=lifespan,
    )

    manager = ConnectionManager()
    app.state.gateway = RealtimeGateway(
        manager,
        session_uow,
        get_verifier(),
        report_unauthenticated=settings.WS_REPORT_UNAUTHENTICATED,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(chat.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(AuthenticationError)
    async def _unauthenticated(_req: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})
