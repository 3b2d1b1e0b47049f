from __future__ import annotations

from datetime import datetime, timezone

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.application.uow import UnitOfWork


async def mark_read(
    reader: Identity,
    from_user_id: int,
    uow: UnitOfWork,
) -> int:
    """Flag every unread message from ``from_user_id`` to the reader as read."""
    updated = await uow.messages_w.mark_read(
        from_user_id, reader.user_id, datetime.now(timezone.utc),
    )
    await uow.commit()
    return updated
