from __future__ import annotations

import logging

from sehra_realtime.application.dto.identity import Identity, IdentityClaim
from sehra_realtime.application.exceptions import AuthenticationError
from sehra_realtime.application.ports.auth import TokenVerifier
from sehra_realtime.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def authenticate(
    claim: IdentityClaim,
    verifier: TokenVerifier,
    uow: UnitOfWork,
) -> Identity:
    """Resolve an identity claim against the user directory.

    A signed token, when present, must verify and must not contradict the
    claimed email. A bare token resolves by its user id. Raises
    AuthenticationError with a user-facing reason.
    """
    email = claim.email.strip()

    if claim.token:
        try:
            token_claims = await verifier.verify(claim.token)
        except Exception as exc:
            logger.debug("Token verification failed: %s", exc)
            raise AuthenticationError("Invalid token") from exc
        token_email = (token_claims.email or "").strip()
        if email and token_email and email.lower() != token_email.lower():
            raise AuthenticationError("Token does not match email")
        if not email:
            user = await uow.users.find_by_id(token_claims.user_id)
            if user is None:
                raise AuthenticationError("User not found")
            return Identity.from_user(user)

    if not email:
        raise AuthenticationError("Invalid authentication data")

    user = await uow.users.find_by_email(email)
    if user is None:
        raise AuthenticationError("User not found")
    return Identity.from_user(user)


async def count_unread(identity: Identity, uow: UnitOfWork) -> int:
    return await uow.messages.count_unread(identity.user_id)
