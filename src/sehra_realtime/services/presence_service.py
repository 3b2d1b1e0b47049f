from __future__ import annotations

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.application.exceptions import ValidationError
from sehra_realtime.application.policies.permissions import assert_admin
from sehra_realtime.application.uow import UnitOfWork
from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.domain.value_objects.enums import UserRole


async def resolve_supervisor_allocation(
    client_id: int,
    supervisor_id: int,
    uow: UnitOfWork,
) -> tuple[UserEntry, UserEntry]:
    """Look up both sides of a supervisor/client pairing."""
    client = await uow.users.find_by_id(client_id)
    supervisor = await uow.users.find_by_id(supervisor_id)
    if (
        client is None
        or supervisor is None
        or not client.is_client
        or supervisor.role != UserRole.SUPERVISOR
    ):
        raise ValidationError("Invalid client or supervisor ID")
    return client, supervisor


async def allocate_supervisor(
    admin: Identity,
    client_id: int,
    supervisor_id: int,
    uow: UnitOfWork,
) -> tuple[UserEntry, UserEntry]:
    """Admin-initiated allocation notice. Nothing is persisted."""
    assert_admin(admin)
    return await resolve_supervisor_allocation(client_id, supervisor_id, uow)


async def resolve_vendor_assignment(
    supervisor_id: int,
    vendor_id: int,
    uow: UnitOfWork,
) -> tuple[UserEntry, UserEntry]:
    supervisor = await uow.users.find_by_id(supervisor_id)
    vendor = await uow.users.find_by_id(vendor_id)
    if (
        supervisor is None
        or vendor is None
        or supervisor.role != UserRole.SUPERVISOR
        or vendor.role != UserRole.VENDOR
    ):
        raise ValidationError("Invalid supervisor or vendor ID")
    return supervisor, vendor
