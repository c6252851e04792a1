"""
Demo Accounts.

Fixed, store-independent identities and their canned profiles, used to
demonstrate every role offline.  A ``DemoDirectory`` owns a private copy
of the canned profiles so that in-session edits (profile updates, new
ratings) are visible to later lookups without touching the constants.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from internhub.models.enums import AccessLevel, AuthProvider, UserRole
from internhub.models.identity import Identity
from internhub.models.profile import (
    AdminExtension,
    CompanyExtension,
    Profile,
    Rating,
    StudentExtension,
)

DEMO_IDENTITIES: tuple[Identity, ...] = (
    Identity(
        id="demo-student",
        email="user@example.com",
        auth_provider=AuthProvider.DEMO,
        role_hint=UserRole.STUDENT,
    ),
    Identity(
        id="demo-company",
        email="entreprise@example.com",
        auth_provider=AuthProvider.DEMO,
        role_hint=UserRole.COMPANY,
    ),
    Identity(
        id="demo-admin",
        email="admin@example.com",
        auth_provider=AuthProvider.DEMO,
        role_hint=UserRole.ADMIN,
    ),
)

DEMO_PROFILES: tuple[Profile, ...] = (
    Profile(
        id="demo-student",
        email="user@example.com",
        name="Jean Dupont",
        last_name="Dupont",
        first_name="Jean",
        avatar="JD",
        phone="+33 6 12 34 56 78",
        bio="Étudiant en informatique passionné par le développement web",
        role=UserRole.STUDENT,
        extension=StudentExtension(
            specialization="Informatique",
            university="Université Paris 1",
            cv_url="https://example.com/cv-jean-dupont.pdf",
            github="https://github.com/jeandupont",
            linkedin="https://linkedin.com/in/jeandupont",
        ),
        ratings=[
            Rating(
                id="eval1",
                author="TechCorp",
                rating=5,
                comment="Excellent stagiaire, très motivé",
                date=dt.date(2024, 1, 15),
            ),
            Rating(
                id="eval2",
                author="WebDev Inc",
                rating=4.5,
                comment="Très bonne collaboration",
                date=dt.date(2024, 2, 20),
            ),
        ],
        average_rating=4.75,
        stats={"internships_completed": 2, "reports_submitted": 1},
    ),
    Profile(
        id="demo-company",
        email="entreprise@example.com",
        name="TechCorp",
        avatar="TC",
        phone="+33 1 23 45 67 89",
        bio="Entreprise spécialisée dans les solutions web innovantes",
        role=UserRole.COMPANY,
        extension=CompanyExtension(
            company_name="TechCorp",
            industry="Technologie & Développement",
            location="Paris, France",
        ),
        ratings=[
            Rating(
                id="eval1",
                author="Jean Dupont",
                rating=5,
                comment="Entreprise exceptionnelle",
                date=dt.date(2024, 1, 15),
            ),
            Rating(
                id="eval2",
                author="Marie Martin",
                rating=4.5,
                comment="Bon environnement de travail",
                date=dt.date(2024, 2, 20),
            ),
        ],
        average_rating=4.75,
        stats={"offers_published": 5, "students_hired": 12},
    ),
    Profile(
        id="demo-admin",
        email="admin@example.com",
        name="Administrateur",
        avatar="AD",
        phone="+33 1 98 76 54 32",
        bio="Responsable de la coordination des stages au sein de l'établissement",
        role=UserRole.ADMIN,
        extension=AdminExtension(
            department="Gestion des Stages",
            school="Université Paris 1",
            access_level=AccessLevel.FULL,
        ),
    ),
)


class DemoDirectory:
    """Lookup table of demo identities and their (mutable) profiles.

    Parameters
    ----------
    enabled:
        When ``False`` the directory is empty and every lookup misses.
    """

    def __init__(self, enabled: bool = True) -> None:
        identities = DEMO_IDENTITIES if enabled else ()
        profiles = DEMO_PROFILES if enabled else ()
        self._identities: dict[str, Identity] = {i.email: i for i in identities}
        self._profiles: dict[str, Profile] = {
            p.email: p.model_copy(deep=True) for p in profiles
        }

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    def identity_for(self, email: str) -> Optional[Identity]:
        return self._identities.get(self._key(email))

    def is_demo_email(self, email: str) -> bool:
        return self._key(email) in self._identities

    def is_demo_id(self, identity_id: str) -> bool:
        return any(i.id == identity_id for i in self._identities.values())

    def profile_for(self, email_or_id: str) -> Optional[Profile]:
        """Return the demo profile matching an email or a demo identity id."""
        profile = self._profiles.get(self._key(email_or_id))
        if profile is not None:
            return profile
        for candidate in self._profiles.values():
            if candidate.id == email_or_id:
                return candidate
        return None

    def store(self, profile: Profile) -> None:
        """Replace the demo profile with the same email."""
        key = self._key(profile.email)
        if key in self._profiles:
            self._profiles[key] = profile

    def profiles(self) -> dict[str, Profile]:
        return dict(self._profiles)
