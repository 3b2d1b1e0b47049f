from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sehra_realtime.domain.entities.contact_status import ContactStatus


class ContactStatusRepository(Protocol):
    async def get_by_user_id(self, user_id: int) -> ContactStatus | None: ...

    async def create(
        self,
        user_id: int,
        supervisor_id: int | None,
        status: str,
        last_contact_date: datetime,
    ) -> ContactStatus: ...

    async def touch(self, status_id: int, status: str, last_contact_date: datetime) -> None: ...
