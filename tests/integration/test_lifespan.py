"""Startup wiring of the bus subscriber and the gateway fan-out."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

import sehra_realtime.app as app_module
from sehra_realtime.app import create_app, lifespan
from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.config import settings
from sehra_realtime.infrastructure.bus.fanout import LocalFanout, RedisFanout
from tests.conftest import FakeTransport


class FakeRedis:
    def __init__(self) -> None:
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class RecordingSubscriber:
    def __init__(self, redis, channel, callback) -> None:
        self.channel = channel
        self.callback = callback
        self.running = False
        started.append(self)

    async def start(self) -> None:
        self.running = True

    async def stop(self) -> None:
        self.running = False


started: list[RecordingSubscriber] = []


@pytest.fixture
def redis(monkeypatch) -> FakeRedis:
    redis = FakeRedis()
    started.clear()
    monkeypatch.setattr(app_module, "aioredis", SimpleNamespace(from_url=lambda *a, **kw: redis))
    monkeypatch.setattr(app_module, "RedisPubSubSubscriber", RecordingSubscriber)
    return redis


@pytest.mark.asyncio
async def test_worker_events_reach_local_connections(redis, monkeypatch, bride):
    monkeypatch.setattr(settings, "FANOUT_MODE", "local")
    app = create_app()
    gateway = app.state.gateway
    transport = FakeTransport()
    conn = gateway.manager.accept(transport)
    gateway.manager.bind(conn.id, Identity.from_user(bride))

    async with lifespan(app):
        [subscriber] = started
        assert subscriber.running
        assert subscriber.channel == settings.REDIS_PUBSUB_CHANNEL
        assert isinstance(gateway.fanout, LocalFanout)

        await subscriber.callback(
            "supervisor_assigned",
            {"user_id": bride.id, "data": {"supervisorId": 2, "supervisorName": "Meera", "supervisorEmail": "m@sehra.test"}},
        )

    assert transport.events == ["supervisor_assigned"]
    assert not subscriber.running
    assert redis.closed


@pytest.mark.asyncio
async def test_redis_mode_routes_gateway_through_bus(redis, monkeypatch):
    monkeypatch.setattr(settings, "FANOUT_MODE", "redis")
    app = create_app()

    async with lifespan(app):
        assert len(started) == 1
        assert isinstance(app.state.gateway.fanout, RedisFanout)
