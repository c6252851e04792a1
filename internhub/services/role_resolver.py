"""
Role Resolution Service.

Determines the role of a raw identity: the role table first, then the
role hint carried in the identity provider's own metadata.  A ``None``
result means "authenticated but roleless", a terminal state surfaced to
the user rather than an error to retry.
"""

from __future__ import annotations

from typing import Optional

from internhub.logger import StructuredLogger
from internhub.models.enums import UserRole
from internhub.models.identity import Identity
from internhub.repositories.profile_repository import ProfileStore
from internhub.services.base_service import BaseService


class RoleResolver(BaseService):
    """Resolves identities to canonical roles."""

    def __init__(self, store: ProfileStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._store = store

    async def resolve(self, identity: Identity) -> Optional[UserRole]:
        # Demo identities carry their role and never reach the store.
        if identity.is_demo:
            return UserRole.parse(identity.role_hint)

        label: Optional[str] = None
        try:
            label = await self._store.get_role(identity.id)
        except Exception as exc:
            self._logger.warning("Role lookup failed for %s: %s", identity.id, exc)

        role = UserRole.parse(label)
        if role is not None:
            return role

        role = UserRole.parse(identity.role_hint)
        if role is not None:
            self._logger.info(
                "Role for %s taken from identity metadata: %s", identity.id, role
            )
            return role

        self._logger.warning(
            "No role found for %s; account is incomplete.",
            identity.id,
            extra={"event": "ROLE_MISSING", "user_id": identity.id},
        )
        return None
