"""Redis Streams consumer for assignment events raised by the admin subsystem."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

OnStreamEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


async def ensure_consumer_group(redis: aioredis.Redis, stream: str, group: str) -> bool:
    """Create the consumer group (and stream) if missing. Returns True if created."""
    try:
        await redis.xgroup_create(stream, group, id="$", mkstream=True)
    except aioredis.ResponseError as e:
        if "BUSYGROUP" in str(e):
            logger.debug("Consumer group %s already exists on %s", group, stream)
            return False
        raise
    logger.info("Created consumer group %s on %s", group, stream)
    return True


class RedisStreamConsumer:
    """XREADGROUP loop over one stream. Entries are acked once handled.

    A handler failure leaves the entry pending; entries idle for longer than
    ``claim_idle_ms`` (this consumer's or a dead peer's) are re-claimed and
    retried before each read.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        stream: str,
        group: str,
        consumer: str,
        callback: OnStreamEventCallback,
        *,
        batch_size: int = 10,
        block_ms: int = 5000,
        claim_idle_ms: int = 60_000,
        retry_delay: float = 5.0,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._group = group
        self._consumer = consumer
        self._callback = callback
        self._batch_size = batch_size
        self._block_ms = block_ms
        self._claim_idle_ms = claim_idle_ms
        self._retry_delay = retry_delay
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await ensure_consumer_group(self._redis, self._stream, self._group)
        self._task = asyncio.create_task(self._consume(), name="redis-stream-consumer")
        logger.info(
            "Stream consumer %s started: stream=%s group=%s",
            self._consumer, self._stream, self._group,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stream consumer %s stopped", self._consumer)

    async def _consume(self) -> None:
        while True:
            try:
                await self._reclaim()
                entries = await self._redis.xreadgroup(
                    groupname=self._group,
                    consumername=self._consumer,
                    streams={self._stream: ">"},
                    count=self._batch_size,
                    block=self._block_ms,
                )
                for _stream_name, messages in entries or []:
                    for entry_id, fields in messages:
                        await self._handle(entry_id, fields)
            except asyncio.CancelledError:
                raise
            except aioredis.RedisError:
                logger.exception("Stream consumer error, retrying in %.0fs", self._retry_delay)
                await asyncio.sleep(self._retry_delay)

    async def _reclaim(self) -> None:
        result = await self._redis.xautoclaim(
            self._stream,
            self._group,
            self._consumer,
            min_idle_time=self._claim_idle_ms,
            start_id="0-0",
            count=self._batch_size,
        )
        # [next_start_id, claimed_entries, deleted_ids] on Redis 7, no third item on 6.2
        for entry_id, fields in result[1]:
            if fields:
                logger.info("Retrying pending entry %s", entry_id)
                await self._handle(entry_id, fields)

    async def _handle(self, entry_id: str, fields: dict[str, Any]) -> None:
        event_type = fields.get("event_type", "unknown")
        try:
            await self._callback(event_type, fields)
        except Exception:
            logger.exception("Error handling stream entry %s (%s)", entry_id, event_type)
            return
        await self._redis.xack(self._stream, self._group, entry_id)
