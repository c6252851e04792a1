"""
Identity and Session Models.

``Identity`` is an authenticated principal without role or profile
semantics.  ``SessionState`` is the live ``(identity, role, loading)``
tuple owned by ``SessionManager``; both are frozen so that every session
change is a whole-object replacement.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from internhub.models.enums import AuthProvider, UserRole


class Identity(BaseModel):
    """An authenticated principal issued by an identity provider.

    ``role_hint`` carries the role label found in the auth provider's own
    metadata (Supabase ``user_metadata.role``).  It is only consulted when
    the role lookup table has no answer.
    """

    id: str
    email: str
    auth_provider: AuthProvider = AuthProvider.REAL
    role_hint: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_demo(self) -> bool:
        return self.auth_provider == AuthProvider.DEMO


class SessionState(BaseModel):
    """Snapshot of the process-wide session."""

    identity: Optional[Identity] = None
    role: Optional[UserRole] = None
    loading: bool = False

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        """``True`` iff an identity is present."""
        return self.identity is not None

    @property
    def is_demo(self) -> bool:
        return self.identity is not None and self.identity.is_demo
