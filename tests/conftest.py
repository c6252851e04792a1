"""
Pytest configuration and in-memory store fakes.

AnyIO runs the async tests on the asyncio backend only: the session core
schedules its own work with ``asyncio`` tasks.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import pytest

from internhub.auth import SessionManager
from internhub.logger import StructuredLogger
from internhub.models.auth_models import OperationResult
from internhub.models.enums import AuthProvider, UserRole
from internhub.models.identity import Identity
from internhub.repositories.identity_store import IdentityStoreError
from internhub.services.demo_accounts import DemoDirectory
from internhub.services.identity_providers import (
    DemoIdentityProvider,
    RemoteIdentityProvider,
)
from internhub.services.profile_resolver import ProfileResolver
from internhub.services.role_resolver import RoleResolver


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def make_identity(user_id: str, email: Optional[str] = None, role_hint: Optional[str] = None) -> Identity:
    return Identity(
        id=user_id,
        email=email or f"{user_id}@school.test",
        auth_provider=AuthProvider.REAL,
        role_hint=role_hint,
    )


class FakeIdentityStore:
    """In-memory ``IdentityStore`` recording every call."""

    def __init__(self, session: Optional[Identity] = None) -> None:
        self.session: Optional[Identity] = session
        self.users: dict[str, tuple[str, Identity]] = {}
        self.calls: list[str] = []
        self.callbacks: list[Callable[[Optional[Identity]], None]] = []
        self.session_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.hang: bool = False
        self.release: asyncio.Event = asyncio.Event()

    def add_user(self, identity: Identity, password: str) -> None:
        self.users[identity.email] = (password, identity)

    async def get_session(self) -> Optional[Identity]:
        self.calls.append("get_session")
        if self.hang:
            await self.release.wait()
        if self.session_error is not None:
            raise self.session_error
        return self.session

    async def sign_in(self, email: str, password: str) -> Identity:
        self.calls.append("sign_in")
        entry = self.users.get(email)
        if entry is None or entry[0] != password:
            raise IdentityStoreError("Invalid login credentials")
        return entry[1]

    async def sign_out(self) -> None:
        self.calls.append("sign_out")
        if self.sign_out_error is not None:
            raise self.sign_out_error

    def on_change(self, callback: Callable[[Optional[Identity]], None]) -> Callable[[], None]:
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def emit(self, identity: Optional[Identity]) -> None:
        for callback in list(self.callbacks):
            callback(identity)


class FakeProfileStore:
    """In-memory ``ProfileStore``; per-user events can hold a call open."""

    def __init__(self) -> None:
        self.roles: dict[str, str] = {}
        self.bases: dict[str, dict[str, Any]] = {}
        self.extensions: dict[tuple[UserRole, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.role_gates: dict[str, asyncio.Event] = {}
        self.base_gates: dict[str, asyncio.Event] = {}
        self.role_error: Optional[Exception] = None
        self.update_error: Optional[str] = None

    async def get_role(self, user_id: str) -> Optional[str]:
        self.calls.append(("get_role", user_id))
        gate = self.role_gates.get(user_id)
        if gate is not None:
            await gate.wait()
        if self.role_error is not None:
            raise self.role_error
        return self.roles.get(user_id)

    async def get_base_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        self.calls.append(("get_base_profile", user_id))
        gate = self.base_gates.get(user_id)
        if gate is not None:
            await gate.wait()
        base = self.bases.get(user_id)
        return dict(base) if base is not None else None

    async def get_extension(self, role: UserRole, user_id: str) -> Optional[dict[str, Any]]:
        self.calls.append(("get_extension", user_id))
        return self.extensions.get((role, user_id))

    async def update_base_profile(self, user_id: str, fields: dict[str, Any]) -> OperationResult:
        self.calls.append(("update_base_profile", user_id))
        if self.update_error is not None:
            return OperationResult(success=False, error=self.update_error)
        self.bases.setdefault(user_id, {}).update(fields)
        return OperationResult(success=True)

    def add_user(
        self,
        user_id: str,
        role: str,
        *,
        nom: str = "Martin",
        prenom: str = "Marie",
        extension: Optional[dict[str, Any]] = None,
    ) -> None:
        self.roles[user_id] = role
        self.bases[user_id] = {
            "id_utilisateur": user_id,
            "email": f"{user_id}@school.test",
            "nom": nom,
            "prenom": prenom,
            "telephone": "+33 6 00 00 00 00",
            "adresse": "1 rue de la Paix",
            "role": role,
        }
        canonical = UserRole.parse(role)
        if extension is not None and canonical is not None:
            self.extensions[(canonical, user_id)] = extension


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="tests")


@pytest.fixture
def identity_store() -> FakeIdentityStore:
    return FakeIdentityStore()


@pytest.fixture
def profile_store() -> FakeProfileStore:
    return FakeProfileStore()


@pytest.fixture
def demo_directory() -> DemoDirectory:
    return DemoDirectory(enabled=True)


@pytest.fixture
def role_resolver(profile_store: FakeProfileStore, logger: StructuredLogger) -> RoleResolver:
    return RoleResolver(store=profile_store, logger=logger)


@pytest.fixture
def session_manager(
    identity_store: FakeIdentityStore,
    role_resolver: RoleResolver,
    demo_directory: DemoDirectory,
    logger: StructuredLogger,
) -> SessionManager:
    return SessionManager(
        identity_store=identity_store,
        role_resolver=role_resolver,
        providers=[
            DemoIdentityProvider(directory=demo_directory, password="password"),
            RemoteIdentityProvider(identity_store),
        ],
        bootstrap_timeout_s=0.05,
        logger=logger,
    )


@pytest.fixture
def profile_resolver(
    profile_store: FakeProfileStore,
    demo_directory: DemoDirectory,
    logger: StructuredLogger,
) -> ProfileResolver:
    return ProfileResolver(store=profile_store, demo_directory=demo_directory, logger=logger)
