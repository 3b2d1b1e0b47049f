from __future__ import annotations

from typing import Protocol

from sehra_realtime.application.dto.identity import TokenClaims


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> TokenClaims: ...
