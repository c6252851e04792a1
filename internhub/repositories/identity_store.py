"""
Identity Store.

The identity store issues and revokes authenticated identities and
notifies subscribers when the signed-in identity changes.  Callers depend
on the ``IdentityStore`` protocol; ``SupabaseIdentityStore`` is the
production implementation over ``supabase.auth``.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from supabase import AuthError

from internhub.database import BackendUnavailableError, DatabaseManager
from internhub.logger import StructuredLogger
from internhub.models.enums import AuthProvider
from internhub.models.identity import Identity
from internhub.repositories.base_repository import BaseRepository

IdentityCallback = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]


class IdentityStoreError(Exception):
    """The identity store rejected a request.

    ``message`` is the store's own wording and is shown to the user as is.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


@runtime_checkable
class IdentityStore(Protocol):
    """Contract of a remote identity store."""

    async def get_session(self) -> Optional[Identity]:
        """Return the identity of the persisted session, if any."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """Authenticate with credentials.

        Raises
        ------
        IdentityStoreError
            When the store rejects the credentials.
        BackendUnavailableError
            When no store is configured.
        """
        ...

    async def sign_out(self) -> None:
        ...

    def on_change(self, callback: IdentityCallback) -> Unsubscribe:
        """Register *callback* for identity changes; returns an unsubscribe handle."""
        ...


def _noop() -> None:
    return None


class SupabaseIdentityStore(BaseRepository):
    """``IdentityStore`` backed by Supabase Auth."""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    @staticmethod
    def _to_identity(user: Any) -> Identity:
        metadata: dict[str, Any] = getattr(user, "user_metadata", None) or {}
        role_hint = metadata.get("role")
        return Identity(
            id=str(user.id),
            email=user.email or "",
            auth_provider=AuthProvider.REAL,
            role_hint=str(role_hint) if role_hint else None,
        )

    async def get_session(self) -> Optional[Identity]:
        session = await self.supabase.auth.get_session()
        if session is None or session.user is None:
            return None
        return self._to_identity(session.user)

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await self.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except AuthError as exc:
            raise IdentityStoreError(exc.message, exc) from exc

        if response.user is None:
            raise IdentityStoreError("Sign-in returned no user.")
        return self._to_identity(response.user)

    async def sign_out(self) -> None:
        await self.supabase.auth.sign_out()

    def on_change(self, callback: IdentityCallback) -> Unsubscribe:
        def _handler(_event: Any, session: Any) -> None:
            user = getattr(session, "user", None) if session is not None else None
            callback(self._to_identity(user) if user is not None else None)

        try:
            subscription = self.supabase.auth.on_auth_state_change(_handler)
        except BackendUnavailableError:
            self._logger.warning(
                "No identity backend; change notifications disabled."
            )
            return _noop
        return subscription.unsubscribe
