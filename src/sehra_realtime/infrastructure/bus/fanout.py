"""Fan-out strategies: push straight into this process, or through Redis."""
from __future__ import annotations

from typing import Any

from sehra_realtime.application.ports.bus import EventPublisher
from sehra_realtime.infrastructure.ws.manager import ConnectionManager
from sehra_realtime.infrastructure.ws.protocol import dump_data


class LocalFanout:
    """Single-process delivery: per-pair order equals call order."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    async def push(self, user_id: int, event: str, data: Any) -> None:
        await self._manager.send_to_user(user_id, event, data)


class RedisFanout:
    """Publishes to a shared channel; each process's subscriber delivers locally."""

    def __init__(self, publisher: EventPublisher, channel: str) -> None:
        self._publisher = publisher
        self._channel = channel

    async def push(self, user_id: int, event: str, data: Any) -> None:
        await self._publisher.publish(
            self._channel,
            {"event": event, "user_id": user_id, "data": dump_data(data)},
        )


async def deliver_from_bus(
    manager: ConnectionManager,
    event: str,
    envelope: dict[str, Any],
) -> int:
    """Subscriber side of RedisFanout."""
    user_id = envelope.get("user_id")
    if user_id is None:
        return 0
    return await manager.send_to_user(int(user_id), event, envelope.get("data"))
