from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.infrastructure.db.mappers import user as mapper
from sehra_realtime.infrastructure.db.models.user import UserModel


class UserDirectoryRepo:
    """Read-only access to the shared ``users`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> UserEntry | None:
        stmt = select(UserModel).where(UserModel.email == email).limit(1)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def find_by_id(self, user_id: int) -> UserEntry | None:
        result = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(result) if result else None

    async def list_all(self) -> list[UserEntry]:
        result = await self._session.execute(select(UserModel).order_by(UserModel.id))
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_by_supervisor(self, supervisor_id: int) -> list[UserEntry]:
        stmt = (
            select(UserModel)
            .where(UserModel.supervisor_id == supervisor_id)
            .order_by(UserModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
