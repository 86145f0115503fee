from __future__ import annotations

import asyncio

import pytest

from conftest import ADMIN_EMAIL, ADMIN_KEY, ADMIN_PASSWORD
from studio.core.exceptions import (
    AuthorizationError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)
from studio.services.remote_store import StoreAuth
from studio.services.session_gate import AdminSessionGate, GateState


async def test_wrong_password_never_authenticates(store, admin_user) -> None:
    gate = AdminSessionGate(store.auth)

    with pytest.raises(InvalidCredentialsError, match="Access denied"):
        await gate.sign_in(ADMIN_EMAIL, "wrong-password")

    assert gate.state == GateState.ANONYMOUS
    assert gate.session is None
    assert gate.error == "Access denied"


async def test_unknown_account_is_access_denied(store, admin_user) -> None:
    gate = AdminSessionGate(store.auth)
    with pytest.raises(InvalidCredentialsError):
        await gate.sign_in("nobody@example.com", ADMIN_PASSWORD)
    assert gate.state == GateState.ANONYMOUS


async def test_password_sign_in_authenticates(store, admin_user) -> None:
    gate = AdminSessionGate(store.auth)
    session = await gate.sign_in(ADMIN_EMAIL.upper(), ADMIN_PASSWORD)

    assert gate.state == GateState.AUTHENTICATED
    assert gate.mode == "password"
    assert session.email == ADMIN_EMAIL
    assert await store.auth.get_session(session.access_token) == session


async def test_unreachable_auth_is_service_unavailable(unreachable_store) -> None:
    gate = AdminSessionGate(StoreAuth(unreachable_store.session_factory))

    with pytest.raises(ServiceUnavailableError, match="Service unavailable"):
        await gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert gate.state == GateState.ANONYMOUS
    assert gate.error == "Service unavailable"


async def test_key_unlock_is_case_sensitive(store) -> None:
    gate = AdminSessionGate(store.auth, access_key=ADMIN_KEY)

    with pytest.raises(InvalidCredentialsError):
        await gate.unlock_with_key(ADMIN_KEY.lower())
    assert gate.state == GateState.ANONYMOUS

    session = await gate.unlock_with_key(ADMIN_KEY)
    assert gate.state == GateState.AUTHENTICATED
    assert gate.mode == "key"
    assert session.role == "service"


async def test_key_unlock_disabled_without_configured_key(store) -> None:
    gate = AdminSessionGate(store.auth, access_key=None)
    with pytest.raises(InvalidCredentialsError):
        await gate.unlock_with_key("")
    assert gate.state == GateState.ANONYMOUS


async def test_out_of_band_sign_out_moves_gate_to_anonymous(store, gate) -> None:
    token = gate.access_token

    await store.auth.sign_out(token)

    assert gate.state == GateState.ANONYMOUS
    assert gate.session is None
    with pytest.raises(AuthorizationError):
        gate.require_authenticated()


async def test_global_sign_out_revokes_every_session_of_the_account(store, admin_user) -> None:
    first = AdminSessionGate(store.auth)
    second = AdminSessionGate(store.auth)
    await first.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    await second.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    await first.sign_out(scope="global")

    assert first.state == GateState.ANONYMOUS
    assert second.state == GateState.ANONYMOUS


async def test_local_sign_out_keeps_other_sessions(store, admin_user) -> None:
    first = AdminSessionGate(store.auth)
    second = AdminSessionGate(store.auth)
    await first.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    await second.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    await first.sign_out()

    assert first.state == GateState.ANONYMOUS
    assert second.state == GateState.AUTHENTICATED


async def test_refresh_replaces_the_held_session(store, gate) -> None:
    old_token = gate.access_token

    session = await gate.refresh()

    assert gate.access_token == session.access_token != old_token
    assert gate.state == GateState.AUTHENTICATED
    assert await store.auth.get_session(old_token) is None


async def test_verify_drops_revoked_session(store, gate) -> None:
    assert await gate.verify() is True
    # revoke without notifying this gate's listener path
    store.auth._revoked[gate.session.session_id] = gate.session.expires_at

    assert await gate.verify() is False
    assert gate.state == GateState.ANONYMOUS


async def test_second_sign_in_while_authenticating_is_ignored(store, admin_user) -> None:
    release = asyncio.Event()
    real_sign_in = store.auth.sign_in_with_password
    calls = []

    async def slow_sign_in(email, password):
        calls.append(email)
        await release.wait()
        return await real_sign_in(email, password)

    store.auth.sign_in_with_password = slow_sign_in
    gate = AdminSessionGate(store.auth)

    first = asyncio.create_task(gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD))
    await asyncio.sleep(0)
    assert gate.state == GateState.AUTHENTICATING

    assert await gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD) is None
    release.set()
    assert await first is not None
    assert calls == [ADMIN_EMAIL]
    assert gate.state == GateState.AUTHENTICATED


async def test_listeners_see_every_transition(store, admin_user) -> None:
    gate = AdminSessionGate(store.auth)
    states = []
    gate.on_change(lambda g: states.append(g.state))

    await gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    await gate.sign_out()

    assert states == [GateState.AUTHENTICATING, GateState.AUTHENTICATED, GateState.ANONYMOUS]
