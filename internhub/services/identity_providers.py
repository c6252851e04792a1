"""
Identity Providers.

Two interchangeable sources of identities: a fixed table of demo
accounts and the remote identity store.  ``SessionManager`` picks the
first provider that accepts a set of credentials, and signs an identity
out through the provider that issued it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from internhub.models.enums import AuthProvider
from internhub.models.identity import Identity
from internhub.repositories.identity_store import IdentityStore, IdentityStoreError
from internhub.services.demo_accounts import DemoDirectory


@runtime_checkable
class IdentityProvider(Protocol):
    """Contract every identity source satisfies."""

    @property
    def kind(self) -> AuthProvider:
        ...

    def accepts(self, email: str, password: str) -> bool:
        """``True`` when this provider should handle the credentials."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        ...

    async def sign_out(self, identity: Identity) -> None:
        ...


class DemoIdentityProvider:
    """Issues demo identities for a known email and the shared demo password.

    Never suspends and never contacts the identity store.
    """

    def __init__(self, directory: DemoDirectory, password: str) -> None:
        self._directory = directory
        self._password = password

    @property
    def kind(self) -> AuthProvider:
        return AuthProvider.DEMO

    def accepts(self, email: str, password: str) -> bool:
        return self._directory.is_demo_email(email) and password == self._password

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = self._directory.identity_for(email)
        if identity is None or password != self._password:
            raise IdentityStoreError("Unknown demo account.")
        return identity

    async def sign_out(self, identity: Identity) -> None:
        return None


class RemoteIdentityProvider:
    """Delegates to the remote ``IdentityStore``; accepts any credentials."""

    def __init__(self, store: IdentityStore) -> None:
        self._store = store

    @property
    def kind(self) -> AuthProvider:
        return AuthProvider.REAL

    def accepts(self, email: str, password: str) -> bool:
        return True

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._store.sign_in(email, password)

    async def sign_out(self, identity: Identity) -> None:
        await self._store.sign_out()
