from __future__ import annotations

from fastapi import APIRouter

from sehra_realtime.api.deps import CurrentIdentity, UoWDep
from sehra_realtime.api.v1.schemas.user import ChatUserResponse
from sehra_realtime.application.policies.permissions import can_chat_with

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("/users", response_model=list[ChatUserResponse])
async def chat_users(identity: CurrentIdentity, uow: UoWDep) -> list[ChatUserResponse]:
    assigned: set[int] = set()
    if identity.is_supervisor:
        assigned = {u.id for u in await uow.users.list_by_supervisor(identity.user_id)}

    users = await uow.users.list_all()
    return [
        ChatUserResponse.model_validate(u)
        for u in users
        if can_chat_with(identity, u, assigned)
    ]
