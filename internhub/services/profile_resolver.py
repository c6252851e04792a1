"""
Profile Resolution Service.

Assembles the unified ``Profile`` of the signed-in identity: the base
user row merged with the one role-specific record matching the role.
Demo identities are served from the ``DemoDirectory`` without any store
access.

Only one profile is loaded at a time.  Fetches are tagged with a
generation number; a fetch that completes after a newer fetch was
started (or after the profile was cleared) is discarded instead of
published.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from internhub.logger import StructuredLogger
from internhub.models.auth_models import OperationResult
from internhub.models.enums import (
    AccessLevel,
    CompanyValidationStatus,
    UserRole,
)
from internhub.models.identity import Identity, SessionState
from internhub.models.profile import (
    BASE_FIELDS,
    UPDATABLE_FIELDS,
    AdminExtension,
    CompanyExtension,
    Profile,
    ProfileExtension,
    Rating,
    StudentExtension,
    initials,
)
from internhub.repositories.profile_repository import ProfileStore, Record
from internhub.services.base_service import BaseService
from internhub.services.demo_accounts import DemoDirectory
from internhub.utils.audit import log_audit_event


def _text(record: Record, column: str, default: str = "") -> str:
    value = record.get(column)
    return str(value) if value else default


def _extension_from_record(role: UserRole, record: Optional[Record]) -> ProfileExtension:
    """Map a role-specific row to its extension model.

    A missing row yields the extension's empty defaults.
    """
    row: Record = record or {}
    if role == UserRole.STUDENT:
        return StudentExtension(
            specialization=_text(row, "filiere"),
            level=_text(row, "niveau"),
            birth_date=row.get("date_naissance") or None,
            cv_url=row.get("cv_url") or None,
            photo_url=row.get("photo_url") or None,
        )
    if role == UserRole.COMPANY:
        return CompanyExtension(
            company_name=_text(row, "nom_societe"),
            industry=_text(row, "secteur_activite"),
            website=_text(row, "site_web"),
            description=_text(row, "description"),
            validation_status=row.get("statut_validation") or CompanyValidationStatus.PENDING,
            logo_url=row.get("logo_url") or None,
        )
    return AdminExtension(
        department=_text(row, "departement"),
        function=_text(row, "fonction"),
        access_level=row.get("niveau_acces") or AccessLevel.READ,
    )


class ProfileResolver(BaseService):
    """Owns the single loaded ``Profile`` of the process.

    Parameters
    ----------
    store:
        Role/profile store used for real identities.
    demo_directory:
        Canned profiles for demo identities.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        store: ProfileStore,
        demo_directory: DemoDirectory,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._store = store
        self._demo = demo_directory
        self._profile: Optional[Profile] = None
        self._requested: Optional[tuple[str, Optional[UserRole]]] = None
        self._generation: int = 0
        self._loading_generation: Optional[int] = None
        self._tasks: set[asyncio.Task[Optional[Profile]]] = set()
        self._unbind: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def profile(self) -> Optional[Profile]:
        """The currently published profile, or ``None``."""
        return self._profile

    @property
    def is_loading(self) -> bool:
        """``True`` while a store fetch for the current generation is running."""
        return self._loading_generation == self._generation

    def clear(self) -> None:
        """Drop the loaded profile and invalidate every in-flight fetch."""
        self._generation += 1
        self._requested = None
        self._profile = None

    def _publish(self, profile: Profile) -> None:
        self._profile = profile
        if self._demo.is_demo_id(profile.id):
            self._demo.store(profile)

    # ------------------------------------------------------------------
    # Session binding
    # ------------------------------------------------------------------

    def bind(
        self,
        subscribe: Callable[[Callable[[SessionState], None]], Callable[[], None]],
    ) -> None:
        """Follow session changes published through *subscribe*.

        Typically called as ``resolver.bind(session_manager.subscribe)``.
        """
        self._unbind = subscribe(self._on_session_changed)

    def unbind(self) -> None:
        if self._unbind is not None:
            self._unbind()
            self._unbind = None

    def _on_session_changed(self, state: SessionState) -> None:
        if state.identity is None:
            if self._requested is not None or self._profile is not None:
                self.clear()
            return

        # Already loaded, loading, or failed for this identity and role.
        if self._requested == (state.identity.id, state.role):
            return

        generation = self._begin(state.identity, state.role)
        task = asyncio.get_running_loop().create_task(
            self._fetch(state.identity, state.role, generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_until_idle(self) -> None:
        """Wait for fetches started by session changes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def _begin(self, identity: Identity, role: Optional[UserRole]) -> int:
        self._generation += 1
        self._requested = (identity.id, role)
        return self._generation

    async def fetch(
        self,
        identity: Identity,
        role: Optional[UserRole] = None,
    ) -> Optional[Profile]:
        """Load and publish the profile of *identity*.

        *role* is the session's resolved role; the base row's own role is
        used only when it is ``None``.  Returns the published profile, or
        ``None`` when nothing was found or the fetch was superseded.
        """
        return await self._fetch(identity, role, self._begin(identity, role))

    async def _fetch(
        self,
        identity: Identity,
        role: Optional[UserRole],
        generation: int,
    ) -> Optional[Profile]:
        if generation != self._generation:
            return None

        demo_profile = self._demo.profile_for(identity.email)
        if demo_profile is not None:
            self._loading_generation = None
            self._publish(demo_profile)
            return demo_profile

        self._loading_generation = generation
        try:
            profile = await self._load(identity, role)
        finally:
            if generation == self._generation:
                self._loading_generation = None

        if generation != self._generation:
            self._logger.debug(
                "Discarding stale profile fetch for %s (generation %d < %d).",
                identity.id,
                generation,
                self._generation,
            )
            return None

        if profile is None:
            self._profile = None
            return None

        self._publish(profile)
        self._logger.info("Profile loaded: %s (role: %s)", identity.id, profile.role)
        return profile

    async def _load(self, identity: Identity, role: Optional[UserRole]) -> Optional[Profile]:
        try:
            base = await self._store.get_base_profile(identity.id)
        except Exception as exc:
            self._logger.error("Profile fetch failed for %s: %s", identity.id, exc)
            return None

        if not base:
            self._logger.error("Profile not found in store: %s", identity.id)
            return None

        resolved_role = role or UserRole.parse(base.get("role"))
        if resolved_role is None:
            self._logger.error("Profile of %s has no usable role.", identity.id)
            return None

        try:
            extension_row = await self._store.get_extension(resolved_role, identity.id)
        except Exception as exc:
            self._logger.warning(
                "Extension fetch failed for %s (%s): %s", identity.id, resolved_role, exc
            )
            extension_row = None

        return self._assemble(identity, resolved_role, base, extension_row)

    @staticmethod
    def _assemble(
        identity: Identity,
        role: UserRole,
        base: Record,
        extension_row: Optional[Record],
    ) -> Profile:
        last_name = _text(base, "nom")
        first_name = _text(base, "prenom")
        return Profile(
            id=identity.id,
            email=_text(base, "email", identity.email),
            name=f"{first_name} {last_name}".strip(),
            last_name=last_name,
            first_name=first_name,
            avatar=initials(last_name, first_name),
            phone=_text(base, "telephone"),
            address=_text(base, "adresse"),
            role=role,
            extension=_extension_from_record(role, extension_row),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update(self, identity_id: str, fields: dict[str, Any]) -> OperationResult:
        """Update base profile fields.

        Demo identities are updated in memory only.  Real identities have
        the whitelisted contact/name fields persisted first; the local
        profile is merged only once the store accepted the write.

        Only base fields (names, phone, address, bio) are merged locally,
        as text; role-specific and unknown keys are logged and ignored.
        """
        ignored = sorted(key for key in fields if key not in BASE_FIELDS)
        if ignored:
            self._logger.warning(
                "Ignoring non-base profile fields for %s: %s",
                identity_id,
                ", ".join(ignored),
            )

        if self._demo.is_demo_id(identity_id):
            target = (
                self._profile
                if self._profile is not None and self._profile.id == identity_id
                else self._demo.profile_for(identity_id)
            )
            if target is not None:
                self._merge(target, fields)
            return OperationResult(success=True)

        columns = {
            UPDATABLE_FIELDS[key]: value
            for key, value in fields.items()
            if key in UPDATABLE_FIELDS
        }
        if columns:
            result = await self._store.update_base_profile(identity_id, columns)
            if not result.success:
                self._logger.warning(
                    "Profile update rejected for %s: %s", identity_id, result.error
                )
                return result

        if self._profile is not None and self._profile.id == identity_id:
            self._merge(self._profile, fields)

        log_audit_event(
            self._logger,
            action="PROFILE_UPDATE",
            entity_type="Profile",
            entity_id=identity_id,
            user_id=identity_id,
            details={"fields": ",".join(sorted(fields))},
        )
        return OperationResult(success=True)

    def _merge(self, target: Profile, fields: dict[str, Any]) -> None:
        merged = target.with_base_fields({k: str(v) for k, v in fields.items() if v is not None})
        if self._profile is not None and self._profile.id == target.id:
            self._publish(merged)
        else:
            self._demo.store(merged)

    def add_rating(self, identity_id: str, rating: Rating) -> None:
        """Append *rating* to the loaded profile of *identity_id*.

        No-op when no profile is loaded for that identity.
        """
        if self._profile is None or self._profile.id != identity_id:
            return
        self._publish(self._profile.with_rating(rating))

    # ------------------------------------------------------------------
    # Cache-only lookup
    # ------------------------------------------------------------------

    def lookup(self, email_or_id: str) -> Optional[Profile]:
        """Return a demo profile or the loaded profile matching the key.

        Never fetches: other users' profiles are not served from here.
        """
        demo_profile = self._demo.profile_for(email_or_id)
        if demo_profile is not None:
            return demo_profile
        if self._profile is not None and email_or_id in (self._profile.id, self._profile.email):
            return self._profile
        return None

    def known_profiles(self) -> dict[str, Profile]:
        """Email-keyed table of every demo profile plus the loaded one."""
        known = self._demo.profiles()
        if self._profile is not None:
            known[self._profile.email] = self._profile
        return known
