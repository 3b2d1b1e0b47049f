from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    from_user_id: int
    to_user_id: int
    content: str
    type: str
    read: bool
    created_at: datetime
    read_at: datetime | None = None

    def counterpart_of(self, user_id: int) -> int:
        return self.to_user_id if self.from_user_id == user_id else self.from_user_id
