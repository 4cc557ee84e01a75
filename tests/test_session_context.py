from __future__ import annotations

import asyncio

import pytest

from meeting_tasks.core.errors import AuthFailure
from meeting_tasks.services.session import IdentityState, SessionContext


def test_sign_in_passes_through_resolving(identity_provider):
    ctx = SessionContext(identity_provider)
    seen: list[IdentityState] = []
    ctx.subscribe(lambda state, identity: seen.append(state))

    identity = asyncio.run(ctx.sign_in_with_password("ada@example.com", "s3cret!"))

    assert seen == [IdentityState.resolving, IdentityState.present]
    assert ctx.state is IdentityState.present
    assert ctx.identity == identity
    assert identity.uid == "uid-ada"


def test_failed_sign_in_restores_absent(identity_provider):
    ctx = SessionContext(identity_provider)

    with pytest.raises(AuthFailure):
        asyncio.run(ctx.sign_in_with_password("ada@example.com", "wrong"))

    assert ctx.state is IdentityState.absent
    assert ctx.identity is None


def test_sign_out_failure_keeps_identity(identity_provider):
    ctx = SessionContext(identity_provider)
    asyncio.run(ctx.sign_in_with_password("ada@example.com", "s3cret!"))
    identity_provider.fail_sign_out = True

    with pytest.raises(AuthFailure):
        asyncio.run(ctx.sign_out())

    assert ctx.state is IdentityState.present
    assert ctx.identity.uid == "uid-ada"


def test_sign_out_clears_identity_and_notifies(identity_provider):
    ctx = SessionContext(identity_provider)
    asyncio.run(ctx.sign_in_with_password("ada@example.com", "s3cret!"))
    seen: list[IdentityState] = []
    unsubscribe = ctx.subscribe(lambda state, identity: seen.append(state))

    asyncio.run(ctx.sign_out())

    assert ctx.identity is None
    assert seen == [IdentityState.absent]

    unsubscribe()
    asyncio.run(ctx.sign_in_with_password("ada@example.com", "s3cret!"))
    assert seen == [IdentityState.absent]


def test_federated_cancel_is_an_auth_failure(identity_provider):
    ctx = SessionContext(identity_provider)
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(ctx.sign_in_with_federated_provider(None))
    assert excinfo.value.code == "provider-cancelled"
    assert ctx.state is IdentityState.absent
