"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

import jwt
import pytest

from sehra_realtime.application.dto.identity import Identity, IdentityClaim
from sehra_realtime.domain.entities.contact_status import ContactStatus
from sehra_realtime.domain.entities.message import Message
from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.domain.value_objects.enums import MessageType, UserRole
from sehra_realtime.infrastructure.auth.hs256_verifier import HS256Verifier
from sehra_realtime.infrastructure.ws.gateway import RealtimeGateway
from sehra_realtime.infrastructure.ws.manager import Connection, ConnectionManager

TEST_SECRET = "unit-test-secret-for-sehra-realtime-0001"

ADMIN_ID = 1
SUPERVISOR_ID = 2
VENDOR_ID = 3
BRIDE_ID = 10
GROOM_ID = 11
FAMILY_ID = 12
OTHER_SUPERVISOR_ID = 20


def make_user(
    user_id: int,
    role: str,
    *,
    name: str | None = None,
    email: str | None = None,
    package: str | None = None,
    supervisor_id: int | None = None,
) -> UserEntry:
    return UserEntry(
        id=user_id,
        email=email or f"{role}{user_id}@sehra.test",
        name=name or f"{role.title()} {user_id}",
        role=role,
        package=package,
        supervisor_id=supervisor_id,
    )


def make_message(
    *,
    message_id: int = 1,
    from_user_id: int = BRIDE_ID,
    to_user_id: int = SUPERVISOR_ID,
    content: str = "hello",
    read: bool = False,
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=message_id,
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        content=content,
        type=MessageType.TEXT,
        read=read,
        created_at=created_at or datetime.now(timezone.utc),
    )


def make_token(user: UserEntry, *, secret: str = TEST_SECRET, **overrides: Any) -> str:
    claims = {"id": user.id, "email": user.email, "role": user.role, "name": user.name}
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256")


@dataclass
class FakeUserDirectory:
    _users: dict[int, UserEntry] = field(default_factory=dict)

    def add(self, *users: UserEntry) -> None:
        for u in users:
            self._users[u.id] = u

    async def find_by_email(self, email: str) -> UserEntry | None:
        return next((u for u in self._users.values() if u.email == email), None)

    async def find_by_id(self, user_id: int) -> UserEntry | None:
        return self._users.get(user_id)

    async def list_all(self) -> list[UserEntry]:
        return sorted(self._users.values(), key=lambda u: u.id)

    async def list_by_supervisor(self, supervisor_id: int) -> list[UserEntry]:
        return [u for u in await self.list_all() if u.supervisor_id == supervisor_id]


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        pair = {user_a, user_b}
        return sorted(
            (m for m in self._messages if {m.from_user_id, m.to_user_id} == pair),
            key=lambda m: (m.created_at, m.id),
        )

    async def list_for_user(self, user_id: int) -> list[Message]:
        return sorted(
            (m for m in self._messages if user_id in (m.from_user_id, m.to_user_id)),
            key=lambda m: (m.created_at, m.id),
            reverse=True,
        )

    async def count_unread(self, user_id: int) -> int:
        return sum(1 for m in self._messages if m.to_user_id == user_id and not m.read)

    async def unread_counts_by_sender(self, user_id: int) -> dict[int, int]:
        counts: dict[int, int] = {}
        for m in self._messages:
            if m.to_user_id == user_id and not m.read:
                counts[m.from_user_id] = counts.get(m.from_user_id, 0) + 1
        return counts


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail_with: Exception | None = None
    # content -> number of event-loop yields before the insert lands
    delays: dict[str, int] = field(default_factory=dict)

    async def create(
        self,
        *,
        from_user_id: int,
        to_user_id: int,
        content: str,
        type: str,
        created_at: datetime,
    ) -> Message:
        for _ in range(self.delays.get(content, 0)):
            await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        msg = Message(
            id=max((m.id for m in self._reader._messages), default=0) + 1,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            content=content,
            type=type,
            read=False,
            created_at=created_at,
        )
        self._reader._messages.append(msg)
        return msg

    async def mark_read(self, from_user_id: int, to_user_id: int, read_at: datetime) -> int:
        if self.fail_with is not None:
            raise self.fail_with
        updated = 0
        for i, m in enumerate(self._reader._messages):
            if m.from_user_id == from_user_id and m.to_user_id == to_user_id and not m.read:
                self._reader._messages[i] = replace(m, read=True, read_at=read_at)
                updated += 1
        return updated


@dataclass
class FakeContactStatusRepo:
    _statuses: dict[int, ContactStatus] = field(default_factory=dict)
    fail_with: Exception | None = None

    async def get_by_user_id(self, user_id: int) -> ContactStatus | None:
        if self.fail_with is not None:
            raise self.fail_with
        return self._statuses.get(user_id)

    async def create(
        self,
        user_id: int,
        supervisor_id: int | None,
        status: str,
        last_contact_date: datetime,
    ) -> ContactStatus:
        cs = ContactStatus(
            id=len(self._statuses) + 1,
            user_id=user_id,
            supervisor_id=supervisor_id,
            status=status,
            last_contact_date=last_contact_date,
            updated_at=last_contact_date,
        )
        self._statuses[user_id] = cs
        return cs

    async def touch(self, status_id: int, status: str, last_contact_date: datetime) -> None:
        for user_id, cs in self._statuses.items():
            if cs.id == status_id:
                self._statuses[user_id] = replace(
                    cs, status=status, last_contact_date=last_contact_date, updated_at=last_contact_date,
                )


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests. Doubles as its own async context manager."""
    users: FakeUserDirectory = field(default_factory=FakeUserDirectory)
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    contact_statuses: FakeContactStatusRepo = field(default_factory=FakeContactStatusRepo)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()


class FakeTransport:
    """Records every frame sent to a connection; can be told to fail."""

    def __init__(self, *, fail: bool = False) -> None:
        self.frames: list[dict[str, Any]] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("socket gone")
        self.frames.append(json.loads(data))

    @property
    def events(self) -> list[str]:
        return [f["event"] for f in self.frames]

    def data_for(self, event: str) -> list[Any]:
        return [f["data"] for f in self.frames if f["event"] == event]

    def clear(self) -> None:
        self.frames.clear()


@pytest.fixture
def admin() -> UserEntry:
    return make_user(ADMIN_ID, UserRole.ADMIN, name="Asha Admin")


@pytest.fixture
def supervisor() -> UserEntry:
    return make_user(SUPERVISOR_ID, UserRole.SUPERVISOR, name="Meera Supervisor")


@pytest.fixture
def vendor() -> UserEntry:
    return make_user(VENDOR_ID, UserRole.VENDOR, name="Royal Caterers")


@pytest.fixture
def bride() -> UserEntry:
    return make_user(
        BRIDE_ID, UserRole.BRIDE, name="Aisha Bride", package="premium", supervisor_id=SUPERVISOR_ID,
    )


@pytest.fixture
def groom() -> UserEntry:
    return make_user(GROOM_ID, UserRole.GROOM, name="Rahul Groom")


@pytest.fixture
def family() -> UserEntry:
    return make_user(FAMILY_ID, UserRole.FAMILY, name="Family Member")


@pytest.fixture
def uow(admin, supervisor, vendor, bride, groom, family) -> FakeUoW:
    uow = FakeUoW()
    uow.users.add(
        admin,
        supervisor,
        vendor,
        bride,
        groom,
        family,
        make_user(OTHER_SUPERVISOR_ID, UserRole.SUPERVISOR),
    )
    return uow


@pytest.fixture
def identity_of():
    return Identity.from_user


@pytest.fixture
def verifier() -> HS256Verifier:
    return HS256Verifier(TEST_SECRET)


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def gateway(manager, uow, verifier) -> RealtimeGateway:
    return RealtimeGateway(manager, lambda: uow, verifier)


async def open_session(
    gateway: RealtimeGateway,
    user: UserEntry | None = None,
) -> tuple[Connection, FakeTransport]:
    """Accept a fake connection and, when a user is given, authenticate it by email."""
    transport = FakeTransport()
    conn = gateway.manager.accept(transport)
    if user is not None:
        await gateway.authenticate(conn.id, IdentityClaim(email=user.email))
        transport.clear()
    return conn, transport
