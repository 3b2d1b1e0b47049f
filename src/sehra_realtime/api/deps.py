"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sehra_realtime.application.dto.identity import Identity
from sehra_realtime.application.ports.auth import TokenVerifier
from sehra_realtime.application.uow import UnitOfWork
from sehra_realtime.config import settings
from sehra_realtime.infrastructure.auth.hs256_verifier import HS256Verifier
from sehra_realtime.infrastructure.db.session import AsyncSessionLocal
from sehra_realtime.infrastructure.db.uow import SqlAlchemyUoW
from sehra_realtime.infrastructure.ws.gateway import RealtimeGateway

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUoW(session)


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]

_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_verifier)],
    uow: UoWDep,
) -> Identity:
    try:
        claims = await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc

    user = await uow.users.find_by_id(claims.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return Identity.from_user(user)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


def get_gateway(request: Request) -> RealtimeGateway:
    return request.app.state.gateway


GatewayDep = Annotated[RealtimeGateway, Depends(get_gateway)]
