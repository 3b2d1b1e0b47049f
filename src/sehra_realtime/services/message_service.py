from __future__ import annotations

from datetime import datetime, timezone

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.application.dto.message import SendMessageDTO
from sehra_realtime.application.exceptions import NotFoundError
from sehra_realtime.application.uow import UnitOfWork
from sehra_realtime.domain.entities.message import Message


async def send_message(
    sender: Identity,
    dto: SendMessageDTO,
    uow: UnitOfWork,
) -> Message:
    """Persist a direct message. The recipient must exist in the directory."""
    recipient = await uow.users.find_by_id(dto.to_user_id)
    if recipient is None:
        raise NotFoundError("Recipient not found")

    msg = await uow.messages_w.create(
        from_user_id=sender.user_id,
        to_user_id=recipient.id,
        content=dto.content,
        type=dto.type,
        created_at=datetime.now(timezone.utc),
    )
    await uow.commit()
    return msg


async def get_conversation(
    identity: Identity,
    other_user_id: int,
    uow: UnitOfWork,
) -> tuple[list[Message], int]:
    """Return the thread with another user and mark their messages read.

    The second element is how many messages were flipped to read.
    """
    messages = await uow.messages.list_between(identity.user_id, other_user_id)
    marked = await uow.messages_w.mark_read(
        other_user_id, identity.user_id, datetime.now(timezone.utc),
    )
    await uow.commit()
    return messages, marked


async def unread_counts(identity: Identity, uow: UnitOfWork) -> dict[int, int]:
    return await uow.messages.unread_counts_by_sender(identity.user_id)


async def last_messages(identity: Identity, uow: UnitOfWork) -> dict[int, Message]:
    """Most recent message per counterpart."""
    latest: dict[int, Message] = {}
    for msg in await uow.messages.list_for_user(identity.user_id):
        latest.setdefault(msg.counterpart_of(identity.user_id), msg)
    return latest
