from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sehra_realtime.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        """Both directions of a conversation, oldest first."""
        ...

    async def list_for_user(self, user_id: int) -> list[Message]:
        """Every message sent or received by the user, newest first."""
        ...

    async def count_unread(self, user_id: int) -> int: ...

    async def unread_counts_by_sender(self, user_id: int) -> dict[int, int]: ...


class MessageWriter(Protocol):
    async def create(
        self,
        *,
        from_user_id: int,
        to_user_id: int,
        content: str,
        type: str,
        created_at: datetime,
    ) -> Message: ...

    async def mark_read(
        self, from_user_id: int, to_user_id: int, read_at: datetime
    ) -> int:
        """Flag unread messages from -> to as read. Returns the number updated."""
        ...
