"""
Shared Enumerations for InternHub Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if role == "student"`` continues to work.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional


class UserRole(StrEnum):
    """Coarse capability class gating route access.

    The store keeps French labels (``etudiant``, ``entreprise``,
    ``administration``) and, for older rows, ``admin``.  Both admin
    spellings map to the single canonical ``ADMIN`` role.
    """

    STUDENT = "student"
    COMPANY = "company"
    ADMIN = "admin"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["UserRole"]:
        """Map a store or metadata label to a canonical role.

        Returns ``None`` for empty or unknown labels.
        """
        if not raw:
            return None
        return _ROLE_LABELS.get(str(raw).strip().lower())


_ROLE_LABELS: dict[str, UserRole] = {
    "student": UserRole.STUDENT,
    "etudiant": UserRole.STUDENT,
    "company": UserRole.COMPANY,
    "entreprise": UserRole.COMPANY,
    "admin": UserRole.ADMIN,
    "administration": UserRole.ADMIN,
}


class AuthProvider(StrEnum):
    """Source that issued an identity."""

    REAL = "real"
    DEMO = "demo"


class CompanyValidationStatus(StrEnum):
    """Administrative validation state of a company account."""

    PENDING = "en_attente"
    VALIDATED = "valide"
    REJECTED = "refuse"


class AccessLevel(StrEnum):
    """Access level of an administration account."""

    READ = "lecture"
    WRITE = "ecriture"
    FULL = "total"


class GateOutcome(StrEnum):
    """Result category of an access-gate decision."""

    WAIT = "wait"
    RENDER = "render"
    REDIRECT = "redirect"
    INCOMPLETE_ACCOUNT = "incomplete_account"
