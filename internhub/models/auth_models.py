"""
Authentication Pipeline Models.

Pydantic models and enumerations for the result contracts between
``SessionManager`` / ``ProfileResolver`` and their callers.  Every
operation returns a structured, inspectable result rather than raw
strings or exception side-channels.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from internhub.models.enums import UserRole


class AuthErrorCode(StrEnum):
    """Categories of sign-in failure."""

    INVALID_CREDENTIALS = "invalid_credentials"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    VALIDATION_ERROR = "validation_error"
    UNEXPECTED_ERROR = "unexpected_error"


class AuthResult(BaseModel):
    """Unified response for a login attempt.

    Attributes
    ----------
    success:
        ``True`` when a session was established.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error, the identity store's own message when it
        rejected the credentials (``None`` on success).
    user_id, email, role:
        The established identity and its resolved role.
    is_demo:
        ``True`` when the session came from a demo account.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    is_demo: bool = False


class OperationResult(BaseModel):
    """Success/failure envelope for write operations."""

    success: bool
    error: Optional[str] = None
