"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.domain.value_objects.enums import ConnectionState
from sehra_realtime.infrastructure.ws.protocol import encode_outbound

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The slice of ``fastapi.WebSocket`` the manager relies on."""

    async def send_text(self, data: str) -> None: ...


@dataclass(slots=True, eq=False)
class Connection:
    id: str
    transport: Transport
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: ConnectionState = ConnectionState.UNAUTHENTICATED
    identity: Identity | None = None

    @property
    def user_id(self) -> int | None:
        return self.identity.user_id if self.identity else None

    @property
    def role(self) -> str | None:
        return self.identity.role if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.state == ConnectionState.AUTHENTICATED


DisconnectListener = Callable[[Connection], None]


class ConnectionManager:
    """Tracks live connections by id and by bound user.

    A user may hold any number of connections (tabs, devices). Indices are
    only mutated synchronously, and fan-out iterates over snapshots, so a send
    never observes a connection half-removed.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._by_user: dict[int, set[str]] = {}
        self._listeners: list[DisconnectListener] = []

    def __len__(self) -> int:
        return len(self._connections)

    def accept(self, transport: Transport) -> Connection:
        conn = Connection(id=uuid.uuid4().hex, transport=transport)
        self._connections[conn.id] = conn
        logger.debug("WS connected: %s (total=%d)", conn.id, len(self._connections))
        return conn

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def bind(self, connection_id: str, identity: Identity) -> Connection:
        """Attach an identity. Re-binding replaces the previous one."""
        conn = self._connections[connection_id]
        if conn.identity is not None:
            self._unindex(conn)
        conn.identity = identity
        conn.state = ConnectionState.AUTHENTICATED
        self._by_user.setdefault(identity.user_id, set()).add(conn.id)
        return conn

    def is_authenticated(self, connection_id: str) -> bool:
        conn = self._connections.get(connection_id)
        return conn is not None and conn.is_authenticated

    def close(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        if conn.identity is not None:
            self._unindex(conn)
        conn.state = ConnectionState.CLOSED
        logger.debug("WS disconnected: %s (user=%s)", conn.id, conn.user_id)
        for listener in list(self._listeners):
            try:
                listener(conn)
            except Exception:
                logger.exception("Disconnect listener failed for %s", conn.id)

    def on_disconnect(self, listener: DisconnectListener) -> None:
        self._listeners.append(listener)

    def connections_for(self, user_id: int) -> list[Connection]:
        ids = self._by_user.get(user_id, ())
        return [self._connections[cid] for cid in list(ids) if cid in self._connections]

    def online_user_ids(self) -> set[int]:
        return set(self._by_user)

    async def send(self, connection_id: str, event: str, data: Any = None) -> bool:
        """Send an event to one connection. Returns False if it is gone."""
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        return await self._deliver(conn, encode_outbound(event, data))

    async def send_to_user(self, user_id: int, event: str, data: Any = None) -> int:
        """Send an event to every live connection of a user; returns how many got it."""
        raw = encode_outbound(event, data)
        delivered = 0
        for conn in self.connections_for(user_id):
            if await self._deliver(conn, raw):
                delivered += 1
        return delivered

    async def _deliver(self, conn: Connection, raw: str) -> bool:
        try:
            await conn.transport.send_text(raw)
        except Exception:
            logger.debug("WS send failed, dropping %s", conn.id, exc_info=True)
            self.close(conn.id)
            return False
        return True

    def _unindex(self, conn: Connection) -> None:
        ids = self._by_user.get(conn.identity.user_id)  # type: ignore[union-attr]
        if ids:
            ids.discard(conn.id)
            if not ids:
                del self._by_user[conn.identity.user_id]  # type: ignore[union-attr]
