"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that owns the process-wide
``SessionState`` (identity, role, loading flag).  It bootstraps from the
identity store with a bounded wait, follows the store's change
notifications, and exposes login/logout.

Usage::

    session = SessionManager(
        identity_store=store,
        role_resolver=RoleResolver(store=profiles, logger=logger),
        providers=[DemoIdentityProvider(...), RemoteIdentityProvider(store)],
        bootstrap_timeout_s=config.SESSION_BOOTSTRAP_TIMEOUT_S,
        logger=logger,
    )
    async with session:
        result = await session.login("user@example.com", "password")
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from internhub.database import BackendUnavailableError
from internhub.logger import StructuredLogger
from internhub.models.auth_models import AuthErrorCode, AuthResult
from internhub.models.identity import Identity, SessionState
from internhub.repositories.identity_store import IdentityStore, IdentityStoreError
from internhub.utils.audit import log_audit_event

if TYPE_CHECKING:
    # internhub.services imports SessionManager when the package loads.
    from internhub.services.identity_providers import IdentityProvider
    from internhub.services.role_resolver import RoleResolver

SessionListener = Callable[[SessionState], None]

_UNEXPECTED_SIGN_IN_MESSAGE: str = "Unexpected sign-in error."
_BACKEND_UNAVAILABLE_MESSAGE: str = (
    "The sign-in service is not available. Only demo accounts can sign in."
)


class SessionManager:
    """Injectable owner of the current session.

    Each instance maintains its own session state, eliminating the need
    for module-level globals.  Construct one at process start and pass it
    to every component that reads the session.

    Parameters
    ----------
    identity_store:
        Remote store providing the persisted session and change notifications.
    role_resolver:
        Resolves identities to roles.
    providers:
        Identity providers in priority order; the first that accepts a set
        of credentials handles the login.
    bootstrap_timeout_s:
        Upper bound on the wait for the persisted session at startup.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        identity_store: IdentityStore,
        role_resolver: RoleResolver,
        providers: Sequence[IdentityProvider],
        bootstrap_timeout_s: float,
        logger: StructuredLogger,
    ) -> None:
        self._store = identity_store
        self._role_resolver = role_resolver
        self._providers: tuple[IdentityProvider, ...] = tuple(providers)
        self._bootstrap_timeout_s = bootstrap_timeout_s
        self._logger = logger

        self._state: SessionState = SessionState(loading=True)
        self._listeners: list[SessionListener] = []
        self._unsubscribe_store: Optional[Callable[[], None]] = None
        self._change_generation: int = 0
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._state.identity

    @property
    def is_authenticated(self) -> bool:
        """``True`` when an identity is signed in."""
        return self._state.is_authenticated

    @property
    def loading(self) -> bool:
        return self._state.loading

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call *listener* with every newly published session.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, state: SessionState) -> None:
        self._state = state
        self._logger.debug(
            "Session published",
            extra={
                "user_id": state.identity.id if state.identity else None,
                "role": state.role,
                "loading": state.loading,
            },
        )
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                self._logger.exception("Session listener failed.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to identity changes, then bootstrap the session."""
        self._unsubscribe_store = self._store.on_change(self._on_identity_changed)
        await self._bootstrap()

    def close(self) -> None:
        """Tear down the change subscription; late results are discarded."""
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None
        self._change_generation += 1

    async def __aenter__(self) -> "SessionManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    async def wait_until_idle(self) -> None:
        """Wait for change notifications still resolving roles."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def _bootstrap(self) -> None:
        generation = self._change_generation
        identity: Optional[Identity] = None
        role = None
        try:
            identity = await self._fetch_session_bounded()
            if identity is not None:
                role = await self._role_resolver.resolve(identity)
        except Exception as exc:
            self._logger.warning("Session bootstrap failed: %s", exc)
            identity = None

        if generation == self._change_generation:
            self._publish(SessionState(identity=identity, role=role, loading=False))
        else:
            # A change notification arrived meanwhile and wins over the
            # bootstrap read; its role must be resolved before loading clears.
            await self.wait_until_idle()
            self._publish(self._state.model_copy(update={"loading": False}))

        self._logger.info(
            "Session bootstrap complete (authenticated: %s).",
            self._state.is_authenticated,
        )

    async def _fetch_session_bounded(self) -> Optional[Identity]:
        """Race the persisted-session read against the bootstrap timer."""
        fetch = asyncio.ensure_future(self._store.get_session())
        timer = asyncio.ensure_future(asyncio.sleep(self._bootstrap_timeout_s))
        done, _pending = await asyncio.wait(
            {fetch, timer}, return_when=asyncio.FIRST_COMPLETED
        )
        if fetch in done:
            timer.cancel()
            return fetch.result()

        self._logger.warning(
            "Identity store did not answer within %.1fs; starting signed out.",
            self._bootstrap_timeout_s,
        )
        fetch.add_done_callback(self._discard_late_session)
        return None

    def _discard_late_session(self, task: "asyncio.Future[Optional[Identity]]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.debug("Late session read failed: %s", exc)
        else:
            self._logger.debug("Late session read ignored.")

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def _on_identity_changed(self, identity: Optional[Identity]) -> None:
        self._change_generation += 1
        if identity is None:
            self._publish(SessionState(loading=self._state.loading))
            return

        task = asyncio.get_running_loop().create_task(
            self._apply_identity(identity, self._change_generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _apply_identity(self, identity: Identity, generation: int) -> None:
        role = await self._role_resolver.resolve(identity)
        if generation != self._change_generation:
            self._logger.debug("Discarding superseded identity change for %s.", identity.id)
            return
        self._publish(SessionState(identity=identity, role=role, loading=self._state.loading))

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    def _select_provider(self, email: str, password: str) -> IdentityProvider:
        for provider in self._providers:
            if provider.accepts(email, password):
                return provider
        raise LookupError("No identity provider accepts these credentials.")

    def _provider_for(self, identity: Identity) -> Optional[IdentityProvider]:
        for provider in self._providers:
            if provider.kind == identity.auth_provider:
                return provider
        return None

    async def login(self, email: str, password: str) -> AuthResult:
        """Sign in and publish the new session.

        Demo credentials are served by the demo provider without touching
        the identity store.  Any other credentials go to the store; on
        failure the session is left unchanged.
        """
        normalized = self.normalize_email(email)
        if not normalized:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.VALIDATION_ERROR,
                error_message="Email address is required.",
            )

        try:
            provider = self._select_provider(normalized, password)
            identity = await provider.sign_in(email.strip(), password)
        except IdentityStoreError as exc:
            self._logger.warning(
                "Sign-in rejected for %s: %s",
                normalized,
                exc.message,
                extra={"event": "LOGIN_FAILED"},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.INVALID_CREDENTIALS,
                error_message=exc.message,
            )
        except BackendUnavailableError:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.BACKEND_UNAVAILABLE,
                error_message=_BACKEND_UNAVAILABLE_MESSAGE,
            )
        except Exception as exc:
            self._logger.error("Unexpected sign-in error for %s: %s", normalized, exc)
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.UNEXPECTED_ERROR,
                error_message=_UNEXPECTED_SIGN_IN_MESSAGE,
            )

        role = await self._role_resolver.resolve(identity)
        self._change_generation += 1
        self._publish(SessionState(identity=identity, role=role, loading=self._state.loading))

        log_audit_event(
            self._logger,
            action="LOGIN",
            entity_type="Session",
            entity_id=identity.id,
            user_id=identity.id,
            details={"role": role, "provider": identity.auth_provider},
        )
        return AuthResult(
            success=True,
            user_id=identity.id,
            email=identity.email,
            role=role,
            is_demo=identity.is_demo,
        )

    async def logout(self) -> None:
        """Sign out and clear the session.

        Demo identities are cleared locally.  For real identities a failed
        server-side sign-out is logged and the local session is cleared
        anyway.  Navigation is left to the caller.
        """
        identity = self._state.identity
        if identity is None:
            return

        provider = self._provider_for(identity)
        if provider is not None:
            try:
                await provider.sign_out(identity)
            except Exception as exc:
                self._logger.warning("Server-side sign_out failed for %s: %s", identity.email, exc)

        self._change_generation += 1
        self._publish(SessionState(loading=self._state.loading))

        log_audit_event(
            self._logger,
            action="LOGOUT",
            entity_type="Session",
            entity_id=identity.id,
            user_id=identity.id,
        )
