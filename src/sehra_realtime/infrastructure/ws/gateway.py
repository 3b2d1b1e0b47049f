"""Realtime event handling on top of the connection manager.

One gateway per process. It authenticates connections, relays direct
messages, propagates read receipts and relays supervisor allocation notices.
Every failure is reported to the connection that caused it; nothing is
retried here.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable

from pydantic import ValidationError as PayloadValidationError

from sehra_realtime.application.dto.identity import Identity, IdentityClaim
from sehra_realtime.application.dto.message import SendMessageDTO
from sehra_realtime.application.exceptions import AppError, AuthenticationError
from sehra_realtime.application.ports.auth import TokenVerifier
from sehra_realtime.application.ports.bus import Fanout
from sehra_realtime.application.uow import UnitOfWork
from sehra_realtime.domain.entities.message import Message
from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.infrastructure.bus.fanout import LocalFanout
from sehra_realtime.infrastructure.ws.manager import Connection, ConnectionManager
from sehra_realtime.infrastructure.ws.protocol import (
    AuthenticatedPayload,
    AuthenticateEvent,
    ClientAssignedPayload,
    MarkMessagesReadEvent,
    MessageSentPayload,
    MessageStatusUpdatePayload,
    OutboundEvent,
    ReceivedMessagePayload,
    SendMessageEvent,
    SuccessPayload,
    SupervisorAllocatedEvent,
    SupervisorAssignedPayload,
    UnreadCountPayload,
    VendorAssignedPayload,
    parse_inbound,
)
from sehra_realtime.services import (
    auth_service,
    contact_service,
    message_service,
    presence_service,
    read_state_service,
)

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


async def announce_supervisor_allocation(
    fanout: Fanout,
    client: UserEntry,
    supervisor: UserEntry,
) -> None:
    await fanout.push(
        client.id,
        OutboundEvent.SUPERVISOR_ASSIGNED,
        SupervisorAssignedPayload(
            supervisor_id=supervisor.id,
            supervisor_name=supervisor.name,
            supervisor_email=supervisor.email,
        ),
    )
    await fanout.push(
        supervisor.id,
        OutboundEvent.CLIENT_ASSIGNED,
        ClientAssignedPayload(
            client_id=client.id,
            client_name=client.name,
            client_email=client.email,
            package=client.package,
        ),
    )


async def announce_vendor_assignment(
    fanout: Fanout,
    supervisor: UserEntry,
    vendor: UserEntry,
    client_id: int | None = None,
) -> None:
    await fanout.push(
        supervisor.id,
        OutboundEvent.VENDOR_ASSIGNED,
        VendorAssignedPayload(
            vendor_id=vendor.id,
            vendor_name=vendor.name,
            vendor_email=vendor.email,
            client_id=client_id,
        ),
    )
    await fanout.push(
        vendor.id,
        OutboundEvent.SUPERVISOR_ASSIGNED,
        SupervisorAssignedPayload(
            supervisor_id=supervisor.id,
            supervisor_name=supervisor.name,
            supervisor_email=supervisor.email,
        ),
    )


class RealtimeGateway:
    def __init__(
        self,
        manager: ConnectionManager,
        uow_factory: UoWFactory,
        verifier: TokenVerifier,
        fanout: Fanout | None = None,
        *,
        report_unauthenticated: bool = False,
    ) -> None:
        self.manager = manager
        self.fanout: Fanout = fanout or LocalFanout(manager)
        self._uow_factory = uow_factory
        self._verifier = verifier
        self._report_unauthenticated = report_unauthenticated
        self._pair_locks: dict[tuple[int, int], asyncio.Lock] = {}
        self._pair_users: dict[tuple[int, int], int] = {}
        manager.on_disconnect(self._on_disconnect)

    async def dispatch(self, connection_id: str, raw: str | bytes) -> None:
        """Validate one inbound frame and route it to its handler."""
        try:
            msg = parse_inbound(raw)
        except PayloadValidationError as exc:
            logger.debug("Invalid frame on %s: %s", connection_id, exc)
            await self.manager.send(connection_id, OutboundEvent.ERROR, "Invalid payload")
            return

        if isinstance(msg, AuthenticateEvent):
            if isinstance(msg.data, str):
                claim = IdentityClaim(token=msg.data)
            else:
                claim = IdentityClaim(email=msg.data.email, token=msg.data.token)
            await self.authenticate(connection_id, claim)

        elif isinstance(msg, SendMessageEvent):
            await self.send_message(
                connection_id,
                SendMessageDTO(
                    to_user_id=msg.data.to_user_id,
                    content=msg.data.message,
                    type=msg.data.type,
                ),
            )

        elif isinstance(msg, MarkMessagesReadEvent):
            await self.mark_read(connection_id, msg.data.from_user_id)

        elif isinstance(msg, SupervisorAllocatedEvent):
            await self.notify_supervisor_allocated(
                connection_id, msg.data.client_id, msg.data.supervisor_id,
            )

    async def authenticate(self, connection_id: str, claim: IdentityClaim) -> Identity | None:
        try:
            async with self._uow_factory() as uow:
                identity = await auth_service.authenticate(claim, self._verifier, uow)
                unread = await auth_service.count_unread(identity, uow)
        except AuthenticationError as exc:
            await self.manager.send(connection_id, OutboundEvent.AUTHENTICATION_ERROR, exc.detail)
            return None
        except Exception:
            logger.exception("Socket authentication error on %s", connection_id)
            await self.manager.send(
                connection_id, OutboundEvent.AUTHENTICATION_ERROR, "Authentication failed",
            )
            return None

        if self.manager.get(connection_id) is None:
            return None
        self.manager.bind(connection_id, identity)
        logger.info(
            "User authenticated: %s (%d, %s) on %s",
            identity.name, identity.user_id, identity.role, connection_id,
        )

        await self.manager.send(
            connection_id,
            OutboundEvent.AUTHENTICATED,
            AuthenticatedPayload(success=True, user_id=identity.user_id, role=identity.role),
        )
        await self.manager.send(
            connection_id, OutboundEvent.UNREAD_COUNT, UnreadCountPayload(count=unread),
        )
        return identity

    def is_authenticated(self, connection_id: str) -> bool:
        return self.manager.is_authenticated(connection_id)

    async def send_message(self, connection_id: str, dto: SendMessageDTO) -> Message | None:
        sender = await self._require_identity(connection_id)
        if sender is None:
            return None

        key = (sender.user_id, dto.to_user_id)
        lock = self._pair_locks.setdefault(key, asyncio.Lock())
        self._pair_users[key] = self._pair_users.get(key, 0) + 1
        try:
            async with lock:
                msg = await self._store_and_relay(connection_id, sender, dto)
        finally:
            self._release_pair(key)
        if msg is None:
            return None

        await self._push_unread_count(msg.to_user_id)
        await self._record_contact(msg.from_user_id, msg.to_user_id)
        return msg

    async def _store_and_relay(
        self,
        connection_id: str,
        sender: Identity,
        dto: SendMessageDTO,
    ) -> Message | None:
        try:
            async with self._uow_factory() as uow:
                msg = await message_service.send_message(sender, dto, uow)
        except AppError as exc:
            await self.manager.send(connection_id, OutboundEvent.ERROR, exc.detail)
            return None
        except Exception:
            logger.exception("Message sending error on %s", connection_id)
            await self.manager.send(connection_id, OutboundEvent.ERROR, "Failed to send message")
            return None

        record = ReceivedMessagePayload.model_validate(msg).model_copy(
            update={"sender_name": sender.name},
        )
        # The message is stored; a failed live push is logged, not reported.
        await self._push(msg.to_user_id, OutboundEvent.RECEIVE_MESSAGE, record)
        await self.manager.send(
            connection_id,
            OutboundEvent.MESSAGE_SENT,
            MessageSentPayload(success=True, message_id=msg.id),
        )
        return msg

    def _release_pair(self, key: tuple[int, int]) -> None:
        remaining = self._pair_users[key] - 1
        if remaining:
            self._pair_users[key] = remaining
        else:
            del self._pair_users[key]
            del self._pair_locks[key]

    async def mark_read(self, connection_id: str, from_user_id: int) -> int | None:
        reader = await self._require_identity(connection_id)
        if reader is None:
            return None

        try:
            async with self._uow_factory() as uow:
                updated = await read_state_service.mark_read(reader, from_user_id, uow)
                unread = await auth_service.count_unread(reader, uow)
        except Exception:
            logger.exception("Mark messages read error on %s", connection_id)
            await self.manager.send(
                connection_id, OutboundEvent.ERROR, "Failed to mark messages as read",
            )
            return None

        await self.manager.send(
            connection_id, OutboundEvent.MESSAGES_MARKED_READ, SuccessPayload(),
        )
        await self.manager.send(
            connection_id, OutboundEvent.UNREAD_COUNT, UnreadCountPayload(count=unread),
        )
        await self.publish_read_receipt(reader.user_id, from_user_id)
        return updated

    async def publish_read_receipt(self, reader_id: int, sender_id: int) -> None:
        await self._push(
            sender_id,
            OutboundEvent.MESSAGE_STATUS_UPDATE,
            MessageStatusUpdatePayload(to_user_id=reader_id, read=True),
        )

    async def notify_supervisor_allocated(
        self,
        connection_id: str,
        client_id: int,
        supervisor_id: int,
    ) -> bool:
        admin = await self._require_identity(connection_id)
        if admin is None:
            return False

        try:
            async with self._uow_factory() as uow:
                client, supervisor = await presence_service.allocate_supervisor(
                    admin, client_id, supervisor_id, uow,
                )
        except AppError as exc:
            logger.info(
                "Supervisor allocation rejected for user %d: %s", admin.user_id, exc.detail,
            )
            await self.manager.send(connection_id, OutboundEvent.ERROR, exc.detail)
            return False
        except Exception:
            logger.exception("Supervisor allocation error on %s", connection_id)
            await self.manager.send(
                connection_id, OutboundEvent.ERROR, "Failed to process supervisor allocation",
            )
            return False

        try:
            await announce_supervisor_allocation(self.fanout, client, supervisor)
        except Exception:
            logger.exception(
                "Failed to announce allocation of supervisor %d to client %d", supervisor.id, client.id,
            )
        await self.manager.send(connection_id, OutboundEvent.ALLOCATION_SUCCESS, SuccessPayload())
        return True

    async def _require_identity(self, connection_id: str) -> Identity | None:
        conn = self.manager.get(connection_id)
        if conn is not None and conn.is_authenticated:
            return conn.identity
        if self._report_unauthenticated and conn is not None:
            await self.manager.send(connection_id, OutboundEvent.NOT_AUTHENTICATED, "Not authenticated")
        else:
            logger.debug("Ignoring action from unauthenticated connection %s", connection_id)
        return None

    async def _push_unread_count(self, user_id: int) -> None:
        try:
            async with self._uow_factory() as uow:
                count = await uow.messages.count_unread(user_id)
        except Exception:
            logger.exception("Failed to refresh unread count for user %d", user_id)
            return
        await self._push(user_id, OutboundEvent.UNREAD_COUNT, UnreadCountPayload(count=count))

    async def _push(self, user_id: int, event: str, data: object) -> None:
        try:
            await self.fanout.push(user_id, event, data)
        except Exception:
            logger.exception("Fan-out of %s to user %d failed", event, user_id)

    async def _record_contact(self, from_user_id: int, to_user_id: int) -> None:
        try:
            async with self._uow_factory() as uow:
                await contact_service.record_contact(from_user_id, to_user_id, uow)
        except Exception:
            logger.exception("Failed to update contact status %d -> %d", from_user_id, to_user_id)

    def _on_disconnect(self, conn: Connection) -> None:
        if conn.identity is None:
            logger.info("Client disconnected: %s", conn.id)
            return
        logger.info("User disconnected: %s (%s)", conn.identity.name, conn.identity.role)
