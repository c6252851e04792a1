"""Session bootstrap, change notifications, login and logout."""

from __future__ import annotations

import asyncio

import pytest

from internhub.auth import SessionManager
from internhub.database import DatabaseManager
from internhub.logger import StructuredLogger
from internhub.models.auth_models import AuthErrorCode
from internhub.models.enums import UserRole
from internhub.repositories.identity_store import SupabaseIdentityStore
from internhub.services.demo_accounts import DemoDirectory
from internhub.services.identity_providers import (
    DemoIdentityProvider,
    RemoteIdentityProvider,
)
from internhub.services.role_resolver import RoleResolver

from conftest import FakeIdentityStore, FakeProfileStore, make_identity

pytestmark = pytest.mark.anyio


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

async def test_session_starts_loading(session_manager: SessionManager) -> None:
    assert session_manager.loading is True
    assert session_manager.is_authenticated is False


async def test_bootstrap_restores_persisted_session(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-1")
    profile_store.add_user("u-1", "etudiant")

    await session_manager.start()

    state = session_manager.state
    assert state.loading is False
    assert state.identity == identity_store.session
    assert state.role == UserRole.STUDENT


async def test_bootstrap_without_session_ends_signed_out(
    session_manager: SessionManager,
) -> None:
    await session_manager.start()

    assert session_manager.loading is False
    assert session_manager.is_authenticated is False


async def test_bootstrap_error_is_swallowed_and_loading_cleared(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    identity_store.session_error = ConnectionError("store down")

    await session_manager.start()

    assert session_manager.loading is False
    assert session_manager.is_authenticated is False


async def test_bootstrap_is_bounded_when_store_hangs(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    identity_store.hang = True
    identity_store.session = make_identity("u-late")

    await asyncio.wait_for(session_manager.start(), timeout=1.0)

    assert session_manager.loading is False
    assert session_manager.is_authenticated is False

    # The belated answer does not sign the user in.
    identity_store.release.set()
    await asyncio.sleep(0.01)
    assert session_manager.is_authenticated is False


async def test_change_notification_honoured_after_timeout(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.hang = True
    profile_store.add_user("u-2", "entreprise")

    await session_manager.start()
    identity_store.emit(make_identity("u-2"))
    await session_manager.wait_until_idle()

    assert session_manager.is_authenticated is True
    assert session_manager.state.role == UserRole.COMPANY
    identity_store.release.set()
    await asyncio.sleep(0.01)


async def test_loading_cleared_only_after_role_resolution(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-3")
    profile_store.add_user("u-3", "administration")
    gate = asyncio.Event()
    profile_store.role_gates["u-3"] = gate

    bootstrap = asyncio.ensure_future(session_manager.start())
    await asyncio.sleep(0.01)
    assert session_manager.loading is True
    assert session_manager.is_authenticated is False

    gate.set()
    await bootstrap
    assert session_manager.loading is False
    assert session_manager.state.role == UserRole.ADMIN


async def test_roleless_identity_bootstraps_with_null_role(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    identity_store.session = make_identity("u-orphan")

    await session_manager.start()

    assert session_manager.is_authenticated is True
    assert session_manager.state.role is None
    assert session_manager.loading is False


# ---------------------------------------------------------------------------
# Change notifications
# ---------------------------------------------------------------------------

async def test_sign_out_notification_clears_session_immediately(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-4")
    profile_store.add_user("u-4", "etudiant")
    await session_manager.start()

    identity_store.emit(None)

    assert session_manager.state.identity is None
    assert session_manager.state.role is None
    assert session_manager.loading is False


async def test_superseded_notification_is_discarded(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    await session_manager.start()
    profile_store.add_user("u-5", "etudiant")
    gate = asyncio.Event()
    profile_store.role_gates["u-5"] = gate

    identity_store.emit(make_identity("u-5"))
    identity_store.emit(None)
    gate.set()
    await session_manager.wait_until_idle()

    assert session_manager.is_authenticated is False
    assert session_manager.state.role is None


async def test_listeners_receive_each_published_state(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    seen = []
    unsubscribe = session_manager.subscribe(seen.append)
    profile_store.add_user("u-6", "entreprise")
    identity_store.session = make_identity("u-6")

    await session_manager.start()
    unsubscribe()
    identity_store.emit(None)

    assert len(seen) == 1
    assert seen[0].role == UserRole.COMPANY
    assert seen[0].loading is False


async def test_close_stops_change_notifications(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    async with session_manager:
        assert len(identity_store.callbacks) == 1
    assert identity_store.callbacks == []


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

async def test_demo_login_sets_student_session_without_store_calls(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    await session_manager.start()
    identity_store.calls.clear()

    result = await session_manager.login("user@example.com", "password")

    assert result.success is True
    assert result.is_demo is True
    assert result.role == UserRole.STUDENT
    assert session_manager.state.role == UserRole.STUDENT
    assert session_manager.state.is_demo is True
    assert identity_store.calls == []
    assert profile_store.calls == []


async def test_demo_login_email_is_case_insensitive(
    session_manager: SessionManager,
) -> None:
    await session_manager.start()

    result = await session_manager.login("  Admin@Example.com ", "password")

    assert result.success is True
    assert result.role == UserRole.ADMIN


async def test_demo_email_with_wrong_password_falls_through_to_store(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    await session_manager.start()

    result = await session_manager.login("user@example.com", "wrong")

    assert "sign_in" in identity_store.calls
    assert result.success is False
    assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS
    assert session_manager.is_authenticated is False


async def test_demo_fallthrough_fails_without_backend(
    role_resolver: RoleResolver,
    logger: StructuredLogger,
) -> None:
    store = SupabaseIdentityStore(db=DatabaseManager(None, logger), logger=logger)
    session = SessionManager(
        identity_store=store,
        role_resolver=role_resolver,
        providers=[
            DemoIdentityProvider(directory=DemoDirectory(), password="password"),
            RemoteIdentityProvider(store),
        ],
        bootstrap_timeout_s=0.05,
        logger=logger,
    )
    await session.start()

    result = await session.login("user@example.com", "wrong")

    assert result.success is False
    assert result.error_code == AuthErrorCode.BACKEND_UNAVAILABLE
    assert session.is_authenticated is False


async def test_real_login_resolves_role(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity = make_identity("u-7", email="marie@school.test")
    identity_store.add_user(identity, "s3cret")
    profile_store.add_user("u-7", "entreprise")
    await session_manager.start()

    result = await session_manager.login("marie@school.test", "s3cret")

    assert result.success is True
    assert result.is_demo is False
    assert session_manager.state.identity == identity
    assert session_manager.state.role == UserRole.COMPANY


async def test_rejected_login_returns_store_message_verbatim(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-8")
    profile_store.add_user("u-8", "etudiant")
    await session_manager.start()
    before = session_manager.state

    result = await session_manager.login("nobody@school.test", "nope")

    assert result.success is False
    assert result.error_message == "Invalid login credentials"
    assert session_manager.state == before


async def test_unexpected_sign_in_error_is_reported_generically(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    async def _boom(email: str, password: str):
        raise ValueError("socket exploded")

    identity_store.sign_in = _boom  # type: ignore[method-assign]
    await session_manager.start()

    result = await session_manager.login("x@school.test", "pw")

    assert result.error_code == AuthErrorCode.UNEXPECTED_ERROR
    assert result.error_message == "Unexpected sign-in error."


async def test_blank_email_is_rejected_before_any_provider(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    await session_manager.start()
    identity_store.calls.clear()

    result = await session_manager.login("   ", "password")

    assert result.error_code == AuthErrorCode.VALIDATION_ERROR
    assert identity_store.calls == []


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

async def test_demo_logout_does_not_contact_store(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
) -> None:
    await session_manager.start()
    await session_manager.login("entreprise@example.com", "password")
    identity_store.calls.clear()

    await session_manager.logout()

    assert identity_store.calls == []
    assert session_manager.is_authenticated is False
    assert session_manager.state.role is None


async def test_real_logout_signs_out_then_clears(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-9")
    profile_store.add_user("u-9", "etudiant")
    await session_manager.start()

    await session_manager.logout()

    assert identity_store.calls[-1] == "sign_out"
    assert session_manager.is_authenticated is False


async def test_failed_remote_sign_out_still_clears_locally(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.session = make_identity("u-10")
    profile_store.add_user("u-10", "etudiant")
    identity_store.sign_out_error = ConnectionError("offline")
    await session_manager.start()

    await session_manager.logout()

    assert session_manager.is_authenticated is False


async def test_logout_keeps_loading_flag_false(
    session_manager: SessionManager,
) -> None:
    await session_manager.start()
    await session_manager.login("user@example.com", "password")

    await session_manager.logout()

    assert session_manager.loading is False


async def test_notification_during_bootstrap_resolves_before_loading_clears(
    session_manager: SessionManager,
    identity_store: FakeIdentityStore,
    profile_store: FakeProfileStore,
) -> None:
    identity_store.hang = True
    profile_store.add_user("u-20", "entreprise")
    gate = asyncio.Event()
    profile_store.role_gates["u-20"] = gate
    published = []
    session_manager.subscribe(published.append)

    bootstrap = asyncio.ensure_future(session_manager.start())
    await asyncio.sleep(0.01)
    identity_store.emit(make_identity("u-20"))
    await asyncio.sleep(0.1)

    # The bootstrap timer has fired but the notified role is still pending.
    assert session_manager.loading is True

    gate.set()
    await bootstrap

    assert session_manager.loading is False
    assert session_manager.is_authenticated is True
    assert session_manager.state.role == UserRole.COMPANY
    assert all(state.loading or state.is_authenticated for state in published)
    identity_store.release.set()
    await asyncio.sleep(0.01)
