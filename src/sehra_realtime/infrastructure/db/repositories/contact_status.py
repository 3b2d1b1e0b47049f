from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sehra_realtime.domain.entities.contact_status import ContactStatus
from sehra_realtime.infrastructure.db.mappers import contact_status as mapper
from sehra_realtime.infrastructure.db.models.contact_status import ContactStatusModel


class ContactStatusRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_user_id(self, user_id: int) -> ContactStatus | None:
        stmt = select(ContactStatusModel).where(ContactStatusModel.user_id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def create(
        self,
        user_id: int,
        supervisor_id: int | None,
        status: str,
        last_contact_date: datetime,
    ) -> ContactStatus:
        model = ContactStatusModel(
            user_id=user_id,
            supervisor_id=supervisor_id,
            status=status,
            last_contact_date=last_contact_date,
            updated_at=last_contact_date,
        )
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def touch(self, status_id: int, status: str, last_contact_date: datetime) -> None:
        stmt = (
            update(ContactStatusModel)
            .where(ContactStatusModel.id == status_id)
            .values(status=status, last_contact_date=last_contact_date, updated_at=last_contact_date)
        )
        await self._session.execute(stmt)
