from __future__ import annotations

from sehra_realtime.domain.entities.message import Message
from sehra_realtime.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        from_user_id=model.from_user_id,
        to_user_id=model.to_user_id,
        content=model.content,
        type=model.message_type,
        read=model.read,
        created_at=model.created_at,
        read_at=model.read_at,
    )
