"""
Session Core Services Package.

The ``create_services()`` factory wires every repository and service
together, returning a typed dict that the application layer can consume
without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from internhub.auth import SessionManager
from internhub.config import AppConfig
from internhub.database import DatabaseManager
from internhub.logger import StructuredLogger
from internhub.repositories.identity_store import SupabaseIdentityStore
from internhub.repositories.profile_repository import ProfileRepository
from internhub.routes import build_default_routes
from internhub.services.access_gate import AccessGate
from internhub.services.demo_accounts import DemoDirectory
from internhub.services.identity_providers import (
    DemoIdentityProvider,
    RemoteIdentityProvider,
)
from internhub.services.profile_resolver import ProfileResolver
from internhub.services.role_resolver import RoleResolver


class ServiceContainer(TypedDict):
    """Typed container for the session core."""

    identity_store: SupabaseIdentityStore
    profile_repository: ProfileRepository
    demo_directory: DemoDirectory
    role_resolver: RoleResolver
    session_manager: SessionManager
    profile_resolver: ProfileResolver
    access_gate: AccessGate


def create_services(db: DatabaseManager, config: AppConfig) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    profile resolver is bound to the session manager, so every session
    change drives a profile refresh.

    Args:
        db: Initialised DatabaseManager (Supabase client optional).
        config: Application configuration.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    identity_store = SupabaseIdentityStore(
        db=db, logger=StructuredLogger(name="identity_store"),
    )
    profile_repository = ProfileRepository(
        db=db, config=config, logger=StructuredLogger(name="profiles_repo"),
    )

    # ------------------------------------------------------------------
    # 2. Leaf services
    # ------------------------------------------------------------------
    demo_directory = DemoDirectory(enabled=config.DEMO_ACCOUNTS_ENABLED)
    role_resolver = RoleResolver(
        store=profile_repository, logger=StructuredLogger(name="roles"),
    )
    access_gate = AccessGate(build_default_routes(StructuredLogger(name="routes")))

    # ------------------------------------------------------------------
    # 3. Session + profile
    # ------------------------------------------------------------------
    session_manager = SessionManager(
        identity_store=identity_store,
        role_resolver=role_resolver,
        providers=[
            DemoIdentityProvider(
                directory=demo_directory,
                password=config.DEMO_PASSWORD.get_secret_value(),
            ),
            RemoteIdentityProvider(identity_store),
        ],
        bootstrap_timeout_s=config.SESSION_BOOTSTRAP_TIMEOUT_S,
        logger=StructuredLogger(name="session"),
    )
    profile_resolver = ProfileResolver(
        store=profile_repository,
        demo_directory=demo_directory,
        logger=StructuredLogger(name="profiles"),
    )
    profile_resolver.bind(session_manager.subscribe)

    return ServiceContainer(
        identity_store=identity_store,
        profile_repository=profile_repository,
        demo_directory=demo_directory,
        role_resolver=role_resolver,
        session_manager=session_manager,
        profile_resolver=profile_resolver,
        access_gate=access_gate,
    )
