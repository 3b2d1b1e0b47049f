from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ContactStatus:
    id: int
    user_id: int
    supervisor_id: int | None
    status: str
    last_contact_date: datetime | None
    updated_at: datetime | None = None
