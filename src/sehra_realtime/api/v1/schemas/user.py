from __future__ import annotations

from sehra_realtime.infrastructure.ws.protocol import CamelModel


class ChatUserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    package: str | None = None
