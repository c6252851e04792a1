"""
Data Models Package.

Re-exports all Pydantic models::

    from internhub.models import Identity, SessionState, Profile, UserRole
"""

from internhub.models.auth_models import AuthErrorCode, AuthResult, OperationResult
from internhub.models.enums import (
    AccessLevel,
    AuthProvider,
    CompanyValidationStatus,
    GateOutcome,
    UserRole,
)
from internhub.models.identity import Identity, SessionState
from internhub.models.profile import (
    AdminExtension,
    CompanyExtension,
    Profile,
    Rating,
    StudentExtension,
)

__all__ = [
    "AccessLevel",
    "AdminExtension",
    "AuthErrorCode",
    "AuthProvider",
    "AuthResult",
    "CompanyExtension",
    "CompanyValidationStatus",
    "GateOutcome",
    "Identity",
    "OperationResult",
    "Profile",
    "Rating",
    "SessionState",
    "StudentExtension",
    "UserRole",
]
