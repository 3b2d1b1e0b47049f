from __future__ import annotations

from fastapi import APIRouter

from sehra_realtime.api.deps import CurrentIdentity, GatewayDep, UoWDep
from sehra_realtime.api.v1.schemas.message import MessageResponse
from sehra_realtime.services import message_service

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/unread/count", response_model=dict[int, int])
async def unread_counts(identity: CurrentIdentity, uow: UoWDep) -> dict[int, int]:
    return await message_service.unread_counts(identity, uow)


@router.get("/last", response_model=dict[int, MessageResponse])
async def last_messages(identity: CurrentIdentity, uow: UoWDep) -> dict[int, MessageResponse]:
    latest = await message_service.last_messages(identity, uow)
    return {
        user_id: MessageResponse.model_validate(msg)
        for user_id, msg in latest.items()
    }


@router.get("/{user_id}", response_model=list[MessageResponse])
async def get_conversation(
    user_id: int,
    identity: CurrentIdentity,
    uow: UoWDep,
    gateway: GatewayDep,
) -> list[MessageResponse]:
    messages, marked = await message_service.get_conversation(identity, user_id, uow)
    if marked:
        await gateway.publish_read_receipt(identity.user_id, user_id)
    return [MessageResponse.model_validate(m) for m in messages]
