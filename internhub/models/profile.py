"""
Profile Models.

A ``Profile`` is the enriched record describing a signed-in identity:
role-invariant base fields (name, contact) merged with exactly one
role-specific extension record.  The extension is a tagged union keyed
by ``kind`` so that a student profile can never carry company fields.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from internhub.models.enums import AccessLevel, CompanyValidationStatus, UserRole


class Rating(BaseModel):
    """A single evaluation left on a profile."""

    id: Optional[str] = None
    rating: float = Field(ge=0, le=5)
    comment: str = ""
    date: Optional[dt.date] = None
    author: str = ""  # company name on a student profile, student name on a company profile


class StudentExtension(BaseModel):
    kind: Literal["student"] = "student"
    specialization: str = ""
    level: str = ""
    birth_date: Optional[dt.date] = None
    cv_url: Optional[str] = None
    photo_url: Optional[str] = None
    university: str = ""
    github: Optional[str] = None
    linkedin: Optional[str] = None


class CompanyExtension(BaseModel):
    kind: Literal["company"] = "company"
    company_name: str = ""
    industry: str = ""
    website: str = ""
    description: str = ""
    validation_status: CompanyValidationStatus = CompanyValidationStatus.PENDING
    logo_url: Optional[str] = None
    location: str = ""


class AdminExtension(BaseModel):
    kind: Literal["admin"] = "admin"
    department: str = ""
    function: str = ""
    access_level: AccessLevel = AccessLevel.READ
    school: str = ""


ProfileExtension = Annotated[
    Union[StudentExtension, CompanyExtension, AdminExtension],
    Field(discriminator="kind"),
]

EXTENSION_TYPES: dict[UserRole, type[BaseModel]] = {
    UserRole.STUDENT: StudentExtension,
    UserRole.COMPANY: CompanyExtension,
    UserRole.ADMIN: AdminExtension,
}

# Base fields a profile owner may edit, mapped to their store columns.
UPDATABLE_FIELDS: dict[str, str] = {
    "last_name": "nom",
    "first_name": "prenom",
    "phone": "telephone",
    "address": "adresse",
}

BASE_FIELDS: frozenset[str] = frozenset(
    {"name", "last_name", "first_name", "avatar", "phone", "address", "bio"}
)


def initials(last_name: Optional[str], first_name: Optional[str]) -> str:
    """Return avatar initials: first letter of first name then of last name."""
    return f"{(first_name or '')[:1].upper()}{(last_name or '')[:1].upper()}"


class Profile(BaseModel):
    """Unified profile of one signed-in identity."""

    id: str
    email: str
    name: str = ""
    last_name: str = ""
    first_name: str = ""
    avatar: str = ""
    phone: str = ""
    address: str = ""
    bio: str = ""
    role: UserRole
    extension: ProfileExtension
    ratings: list[Rating] = Field(default_factory=list)
    average_rating: float = 0.0
    stats: dict[str, int] = Field(default_factory=dict)

    def with_rating(self, rating: Rating) -> "Profile":
        """Return a copy with *rating* appended and the average recomputed."""
        ratings = [*self.ratings, rating]
        average = round(sum(r.rating for r in ratings) / len(ratings), 2)
        return self.model_copy(update={"ratings": ratings, "average_rating": average})

    def with_base_fields(self, fields: dict[str, str]) -> "Profile":
        """Return a copy with base *fields* merged in.

        Keys outside the base field set are ignored.  ``name`` and
        ``avatar`` are derived again when a name part changes.
        """
        update = {key: value for key, value in fields.items() if key in BASE_FIELDS}
        if "last_name" in update or "first_name" in update:
            last = update.get("last_name", self.last_name)
            first = update.get("first_name", self.first_name)
            update.setdefault("name", f"{first} {last}".strip())
            update.setdefault("avatar", initials(last, first))
        return self.model_copy(update=update)
