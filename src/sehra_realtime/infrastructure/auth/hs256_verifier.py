from __future__ import annotations

import jwt

from sehra_realtime.application.dto.identity import TokenClaims


class HS256Verifier:
    """Verify JWTs signed with the platform's shared secret.

    Tokens carry ``id``, ``email``, ``role`` and ``name``; ``sub`` is accepted
    in place of ``id``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> TokenClaims:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        raw_id = payload.get("id", payload.get("sub"))
        if raw_id is None:
            raise jwt.InvalidTokenError("Token has no subject")
        return TokenClaims(
            user_id=int(raw_id),
            email=payload.get("email"),
            role=payload.get("role"),
            name=payload.get("name"),
        )
