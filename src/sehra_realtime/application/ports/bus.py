from __future__ import annotations

from typing import Any, Protocol


class EventPublisher(Protocol):
    async def publish(self, channel: str, payload: dict[str, Any]) -> None: ...


class Fanout(Protocol):
    """Delivers a named event to every live connection of a user, wherever it is held."""

    async def push(self, user_id: int, event: str, data: Any) -> None: ...
