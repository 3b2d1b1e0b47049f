from __future__ import annotations

from dataclasses import dataclass

from sehra_realtime.domain.value_objects.enums import MessageType


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    to_user_id: int
    content: str
    type: str = MessageType.TEXT
