from __future__ import annotations

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.application.exceptions import ForbiddenError
from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.domain.value_objects.enums import UserRole


def assert_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise ForbiddenError("Not authorized")


def can_chat_with(
    identity: Identity,
    other: UserEntry,
    assigned_client_ids: set[int] | frozenset[int] = frozenset(),
) -> bool:
    """Role matrix for who may appear in a user's chat list."""
    if other.id == identity.user_id:
        return False

    if identity.is_client:
        return other.role in (UserRole.SUPERVISOR, UserRole.VENDOR, UserRole.ADMIN)

    if identity.is_supervisor:
        return (
            other.id in assigned_client_ids
            or other.role in (UserRole.VENDOR, UserRole.ADMIN)
        )

    if identity.role == UserRole.VENDOR:
        return other.is_client or other.role in (UserRole.SUPERVISOR, UserRole.ADMIN)

    # admins and unrecognised roles see everyone
    return True
