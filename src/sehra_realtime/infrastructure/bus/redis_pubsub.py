"""Redis Pub/Sub transport for cross-process fan-out."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from sehra_realtime.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    """Implements application.ports.bus.EventPublisher.

    ``payload["event"]`` names the event; the rest travels as its data.
    """

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        event = payload.get("event", "unknown")
        data = {k: v for k, v in payload.items() if k != "event"}
        await self._redis.publish(channel, serialize_event(str(event), data))


OnEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Listens on one channel and hands each decoded event to ``callback``.

    Lost subscriptions are re-established after ``retry_delay``; anything
    published while disconnected is not replayed.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
        *,
        retry_delay: float = 1.0,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._retry_delay = retry_delay
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Redis Pub/Sub subscriber stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except asyncio.CancelledError:
                raise
            except aioredis.RedisError:
                logger.exception(
                    "Lost subscription to %s, retrying in %.1fs", self._channel, self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] == "message":
                    await self._dispatch(message["data"])
        finally:
            await pubsub.aclose()

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            event, data = deserialize_event(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping malformed bus message on %s", self._channel)
            return
        try:
            await self._callback(event, data)
        except Exception:
            logger.exception("Error delivering %s from %s", event, self._channel)
