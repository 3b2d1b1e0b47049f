from __future__ import annotations

import logging
from datetime import datetime, timezone

from sehra_realtime.application.uow import UnitOfWork
from sehra_realtime.domain.entities.contact_status import ContactStatus
from sehra_realtime.domain.value_objects.enums import ContactStatusValue, UserRole

logger = logging.getLogger(__name__)


async def record_contact(
    from_user_id: int,
    to_user_id: int,
    uow: UnitOfWork,
) -> ContactStatus | None:
    """Refresh the client's contact status after supervisor/client messaging.

    Returns None when the pair is not a supervisor and a client.
    """
    sender = await uow.users.find_by_id(from_user_id)
    recipient = await uow.users.find_by_id(to_user_id)
    if sender is None or recipient is None:
        return None

    if sender.role == UserRole.SUPERVISOR and recipient.is_client:
        client, supervisor = recipient, sender
    elif recipient.role == UserRole.SUPERVISOR and sender.is_client:
        client, supervisor = sender, recipient
    else:
        return None

    now = datetime.now(timezone.utc)
    existing = await uow.contact_statuses.get_by_user_id(client.id)
    if existing is not None:
        await uow.contact_statuses.touch(existing.id, ContactStatusValue.ACTIVE, now)
        status = ContactStatus(
            id=existing.id,
            user_id=existing.user_id,
            supervisor_id=existing.supervisor_id,
            status=ContactStatusValue.ACTIVE,
            last_contact_date=now,
            updated_at=now,
        )
    else:
        status = await uow.contact_statuses.create(
            client.id, supervisor.id, ContactStatusValue.ACTIVE, now,
        )
    await uow.commit()
    logger.debug("Contact status for client %d refreshed by %d", client.id, supervisor.id)
    return status
