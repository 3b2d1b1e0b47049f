"""Relay assignment events raised by the admin subsystem to live connections.

Entries on ``ASSIGNMENT_EVENTS_STREAM`` carry an ``event_type`` field plus
string ids:

- ``supervisor.assigned``: ``client_id``, ``supervisor_id``
- ``vendor.assigned``: ``supervisor_id``, ``vendor_id`` and optionally ``client_id``

Pushes go through the Redis fan-out channel, so whichever web process holds
the target's connections delivers them.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

import redis.asyncio as aioredis

from sehra_realtime.application.exceptions import ValidationError
from sehra_realtime.application.ports.bus import Fanout
from sehra_realtime.config import settings
from sehra_realtime.domain.events.supervisor_assigned import SupervisorAssigned
from sehra_realtime.domain.events.vendor_assigned import VendorAssigned
from sehra_realtime.infrastructure.bus.fanout import RedisFanout
from sehra_realtime.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from sehra_realtime.infrastructure.bus.redis_streams import RedisStreamConsumer
from sehra_realtime.infrastructure.db.uow import session_uow
from sehra_realtime.infrastructure.ws.gateway import (
    UoWFactory,
    announce_supervisor_allocation,
    announce_vendor_assignment,
)
from sehra_realtime.services import presence_service

logger = logging.getLogger(__name__)


def parse_event(event_type: str, fields: dict[str, Any]) -> SupervisorAssigned | VendorAssigned | None:
    """Build the domain event for a stream entry; None for unknown types.

    Raises KeyError / ValueError on missing or non-numeric ids.
    """
    if event_type == "supervisor.assigned":
        return SupervisorAssigned(
            client_id=int(fields["client_id"]),
            supervisor_id=int(fields["supervisor_id"]),
        )
    if event_type == "vendor.assigned":
        client_id = fields.get("client_id")
        return VendorAssigned(
            supervisor_id=int(fields["supervisor_id"]),
            vendor_id=int(fields["vendor_id"]),
            client_id=int(client_id) if client_id else None,
        )
    return None


class AssignmentEventHandler:
    def __init__(self, fanout: Fanout, uow_factory: UoWFactory = session_uow) -> None:
        self._fanout = fanout
        self._uow_factory = uow_factory

    async def __call__(self, event_type: str, fields: dict[str, Any]) -> None:
        try:
            event = parse_event(event_type, fields)
        except (KeyError, ValueError):
            logger.warning("Malformed %s event, skipping: %r", event_type, fields)
            return
        if event is None:
            logger.debug("Ignoring unknown event: %s", event_type)
            return

        try:
            if isinstance(event, SupervisorAssigned):
                await self._supervisor_assigned(event)
            else:
                await self._vendor_assigned(event)
        except ValidationError as exc:
            logger.warning("Dropping %s event: %s", event_type, exc.detail)

    async def _supervisor_assigned(self, event: SupervisorAssigned) -> None:
        async with self._uow_factory() as uow:
            client, supervisor = await presence_service.resolve_supervisor_allocation(
                event.client_id, event.supervisor_id, uow,
            )
        await announce_supervisor_allocation(self._fanout, client, supervisor)
        logger.info("Supervisor %d assigned to client %d", supervisor.id, client.id)

    async def _vendor_assigned(self, event: VendorAssigned) -> None:
        async with self._uow_factory() as uow:
            supervisor, vendor = await presence_service.resolve_vendor_assignment(
                event.supervisor_id, event.vendor_id, uow,
            )
        await announce_vendor_assignment(self._fanout, supervisor, vendor, event.client_id)
        logger.info("Vendor %d assigned by supervisor %d", vendor.id, supervisor.id)


async def run_consumer() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    consumer_name = f"consumer-{uuid.uuid4().hex[:8]}"
    fanout = RedisFanout(RedisPubSubPublisher(redis), settings.REDIS_PUBSUB_CHANNEL)

    consumer = RedisStreamConsumer(
        redis=redis,
        stream=settings.ASSIGNMENT_EVENTS_STREAM,
        group=settings.ASSIGNMENT_EVENTS_GROUP,
        consumer=consumer_name,
        callback=AssignmentEventHandler(fanout),
    )
    await consumer.start()
    logger.info("Assignment events consumer started (%s)", consumer_name)

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await consumer.stop()
        await redis.aclose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_consumer())


if __name__ == "__main__":
    main()
