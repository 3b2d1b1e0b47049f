from __future__ import annotations

import pytest

from sehra_realtime.application.dto.identity import IdentityClaim
from sehra_realtime.application.exceptions import AuthenticationError
from sehra_realtime.services import auth_service
from tests.conftest import make_message, make_token


@pytest.mark.asyncio
async def test_authenticate_by_email(uow, verifier, bride):
    identity = await auth_service.authenticate(IdentityClaim(email=bride.email), verifier, uow)

    assert identity.user_id == bride.id
    assert identity.role == "bride"
    assert identity.name == bride.name
    assert identity.is_client


@pytest.mark.asyncio
async def test_authenticate_with_matching_token(uow, verifier, supervisor):
    claim = IdentityClaim(email=supervisor.email, token=make_token(supervisor))

    identity = await auth_service.authenticate(claim, verifier, uow)

    assert identity.user_id == supervisor.id
    assert identity.is_supervisor


@pytest.mark.asyncio
async def test_token_alone_is_enough(uow, verifier, vendor):
    identity = await auth_service.authenticate(IdentityClaim(token=make_token(vendor)), verifier, uow)
    assert identity.user_id == vendor.id


@pytest.mark.asyncio
async def test_token_alone_resolves_by_user_id(uow, verifier, bride):
    token = make_token(bride, email="maiden-name@sehra.test")

    identity = await auth_service.authenticate(IdentityClaim(token=token), verifier, uow)

    assert identity.user_id == bride.id
    assert identity.email == bride.email


@pytest.mark.asyncio
async def test_token_alone_for_deleted_user(uow, verifier, bride):
    with pytest.raises(AuthenticationError, match="User not found"):
        await auth_service.authenticate(IdentityClaim(token=make_token(bride, id=999)), verifier, uow)


@pytest.mark.asyncio
async def test_email_compare_ignores_case(uow, verifier, bride):
    claim = IdentityClaim(email=bride.email, token=make_token(bride, email=bride.email.upper()))
    identity = await auth_service.authenticate(claim, verifier, uow)
    assert identity.user_id == bride.id


@pytest.mark.asyncio
async def test_bad_signature_rejected(uow, verifier, bride):
    claim = IdentityClaim(email=bride.email, token=make_token(bride, secret="another-secret-that-is-long-enough-00"))

    with pytest.raises(AuthenticationError) as exc_info:
        await auth_service.authenticate(claim, verifier, uow)

    assert exc_info.value.detail == "Invalid token"


@pytest.mark.asyncio
async def test_garbage_token_rejected(uow, verifier, bride):
    with pytest.raises(AuthenticationError, match="Invalid token"):
        await auth_service.authenticate(IdentityClaim(email=bride.email, token="not-a-jwt"), verifier, uow)


@pytest.mark.asyncio
async def test_token_for_another_email_rejected(uow, verifier, bride, groom):
    claim = IdentityClaim(email=bride.email, token=make_token(groom))

    with pytest.raises(AuthenticationError, match="Token does not match email"):
        await auth_service.authenticate(claim, verifier, uow)


@pytest.mark.asyncio
async def test_empty_claim_rejected(uow, verifier):
    with pytest.raises(AuthenticationError, match="Invalid authentication data"):
        await auth_service.authenticate(IdentityClaim(email="  "), verifier, uow)


@pytest.mark.asyncio
async def test_unknown_email_rejected(uow, verifier):
    with pytest.raises(AuthenticationError, match="User not found"):
        await auth_service.authenticate(IdentityClaim(email="ghost@sehra.test"), verifier, uow)


@pytest.mark.asyncio
async def test_count_unread(uow, identity_of, bride, supervisor):
    uow.messages._messages.extend([
        make_message(message_id=1, from_user_id=supervisor.id, to_user_id=bride.id),
        make_message(message_id=2, from_user_id=supervisor.id, to_user_id=bride.id, read=True),
        make_message(message_id=3, from_user_id=bride.id, to_user_id=supervisor.id),
    ])

    assert await auth_service.count_unread(identity_of(bride), uow) == 1
