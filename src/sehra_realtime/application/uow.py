from __future__ import annotations

from typing import Protocol

from sehra_realtime.application.repositories.contact_status import ContactStatusRepository
from sehra_realtime.application.repositories.message import MessageReader, MessageWriter
from sehra_realtime.application.repositories.user import UserDirectory


class UnitOfWork(Protocol):
    users: UserDirectory
    messages: MessageReader
    messages_w: MessageWriter
    contact_statuses: ContactStatusRepository

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
