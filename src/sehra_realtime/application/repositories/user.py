from __future__ import annotations

from typing import Protocol

from sehra_realtime.domain.entities.user import UserEntry


class UserDirectory(Protocol):
    async def find_by_email(self, email: str) -> UserEntry | None: ...

    async def find_by_id(self, user_id: int) -> UserEntry | None: ...

    async def list_all(self) -> list[UserEntry]: ...

    async def list_by_supervisor(self, supervisor_id: int) -> list[UserEntry]: ...
