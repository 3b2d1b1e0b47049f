from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sehra_realtime.domain.entities.message import Message
from sehra_realtime.infrastructure.db.mappers import message as mapper
from sehra_realtime.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                or_(
                    and_(MessageModel.from_user_id == user_a, MessageModel.to_user_id == user_b),
                    and_(MessageModel.from_user_id == user_b, MessageModel.to_user_id == user_a),
                )
            )
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_user(self, user_id: int) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                or_(MessageModel.from_user_id == user_id, MessageModel.to_user_id == user_id)
            )
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def count_unread(self, user_id: int) -> int:
        stmt = select(func.count(MessageModel.id)).where(
            MessageModel.to_user_id == user_id,
            MessageModel.read.is_(False),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def unread_counts_by_sender(self, user_id: int) -> dict[int, int]:
        stmt = (
            select(MessageModel.from_user_id, func.count(MessageModel.id))
            .where(
                MessageModel.to_user_id == user_id,
                MessageModel.read.is_(False),
            )
            .group_by(MessageModel.from_user_id)
        )
        result = await self._session.execute(stmt)
        return {sender_id: int(n) for sender_id, n in result.all()}


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        from_user_id: int,
        to_user_id: int,
        content: str,
        type: str,
        created_at: datetime,
    ) -> Message:
        model = MessageModel(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            content=content,
            message_type=type,
            read=False,
            created_at=created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def mark_read(
        self,
        from_user_id: int,
        to_user_id: int,
        read_at: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.from_user_id == from_user_id,
                MessageModel.to_user_id == to_user_id,
                MessageModel.read.is_(False),
            )
            .values(read=True, read_at=read_at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
