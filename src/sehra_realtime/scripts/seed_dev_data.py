"""Seed development data: tables, one user per role and a short supervisor thread."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from sehra_realtime.domain.value_objects.enums import MessageType, UserRole
from sehra_realtime.infrastructure.db.base import Base
from sehra_realtime.infrastructure.db.models import UserModel
from sehra_realtime.infrastructure.db.session import AsyncSessionLocal, engine
from sehra_realtime.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

_USERS = [
    ("admin@sehra.dev", "Sehra Admin", UserRole.ADMIN, None),
    ("supervisor@sehra.dev", "Meera Supervisor", UserRole.SUPERVISOR, None),
    ("vendor@sehra.dev", "Royal Caterers", UserRole.VENDOR, None),
    ("bride@sehra.dev", "Aisha Bride", UserRole.BRIDE, "premium"),
    ("groom@sehra.dev", "Rahul Groom", UserRole.GROOM, "premium"),
]


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(UserModel.id).limit(1))
        if existing is not None:
            logger.info("Users table is not empty, skipping seed")
            return

        by_role: dict[str, UserModel] = {}
        for email, name, role, package in _USERS:
            user = UserModel(email=email, name=name, role=role, package=package)
            session.add(user)
            by_role[role] = user
        await session.flush()

        supervisor = by_role[UserRole.SUPERVISOR]
        bride = by_role[UserRole.BRIDE]
        bride.supervisor_id = supervisor.id
        by_role[UserRole.GROOM].supervisor_id = supervisor.id

        uow = SqlAlchemyUoW(session)
        start = datetime.now(timezone.utc) - timedelta(minutes=10)
        thread = [
            (supervisor, bride, "Welcome! I'll be coordinating your wedding.", MessageType.SUPERVISOR_ALLOCATION),
            (bride, supervisor, "Thank you! Can we talk about the caterer?", MessageType.TEXT),
            (supervisor, bride, "Of course, I've shortlisted Royal Caterers.", MessageType.TEXT),
        ]
        for i, (sender, recipient, content, msg_type) in enumerate(thread):
            await uow.messages_w.create(
                from_user_id=sender.id,
                to_user_id=recipient.id,
                content=content,
                type=msg_type,
                created_at=start + timedelta(minutes=i),
            )

        await uow.commit()
        logger.info("Seeded %d users and %d messages", len(_USERS), len(thread))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
