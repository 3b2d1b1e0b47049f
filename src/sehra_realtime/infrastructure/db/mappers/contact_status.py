from __future__ import annotations

from sehra_realtime.domain.entities.contact_status import ContactStatus
from sehra_realtime.infrastructure.db.models.contact_status import ContactStatusModel


def model_to_entity(model: ContactStatusModel) -> ContactStatus:
    return ContactStatus(
        id=model.id,
        user_id=model.user_id,
        supervisor_id=model.supervisor_id,
        status=model.status,
        last_contact_date=model.last_contact_date,
        updated_at=model.updated_at,
    )
