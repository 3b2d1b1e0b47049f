from __future__ import annotations

from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> UserEntry:
    return UserEntry(
        id=model.id,
        email=model.email,
        name=model.name,
        role=model.role,
        package=model.package,
        supervisor_id=model.supervisor_id,
    )
