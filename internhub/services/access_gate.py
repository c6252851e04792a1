"""
Access Gate.

Pure decision function mapping the session and a requested path to what
the application should show.  It reads the session and never mutates it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from internhub.models.enums import GateOutcome, UserRole
from internhub.models.identity import SessionState
from internhub.routes import HOME_PATH, LOGIN_PATH, RouteRegistry

LOADING_VIEW: str = "loading"
INCOMPLETE_ACCOUNT_VIEW: str = "incomplete_account"

DASHBOARD_VIEWS: dict[UserRole, str] = {
    UserRole.STUDENT: "student_dashboard",
    UserRole.COMPANY: "company_dashboard",
    UserRole.ADMIN: "admin_dashboard",
}


class GateDecision(BaseModel):
    """What to do with a requested path.

    ``view`` is set for ``wait``, ``render`` and ``incomplete_account``;
    ``redirect_to`` is set for ``redirect``.
    """

    outcome: GateOutcome
    view: Optional[str] = None
    redirect_to: Optional[str] = None
    params: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def render(cls, view: str, params: Optional[dict[str, str]] = None) -> "GateDecision":
        return cls(outcome=GateOutcome.RENDER, view=view, params=params or {})

    @classmethod
    def redirect(cls, target: str) -> "GateDecision":
        return cls(outcome=GateOutcome.REDIRECT, redirect_to=target)


class AccessGate:
    """Decides route reachability from the session and the route table."""

    def __init__(self, routes: RouteRegistry) -> None:
        self._routes = routes

    def decide(self, session: SessionState, path: str) -> GateDecision:
        if session.loading:
            return GateDecision(outcome=GateOutcome.WAIT, view=LOADING_VIEW)

        entry, params = self._routes.match(path)

        if not session.is_authenticated:
            if entry is not None and entry.public:
                return GateDecision.render(entry.view, params)
            return GateDecision.redirect(LOGIN_PATH)

        role = session.role
        if role is None:
            return GateDecision(
                outcome=GateOutcome.INCOMPLETE_ACCOUNT, view=INCOMPLETE_ACCOUNT_VIEW
            )

        if entry is None or entry.public:
            return GateDecision.redirect(HOME_PATH)
        if entry.pattern == HOME_PATH:
            return GateDecision.render(DASHBOARD_VIEWS[role])
        if entry.allowed_roles is not None and role not in entry.allowed_roles:
            return GateDecision.redirect(HOME_PATH)
        return GateDecision.render(entry.view, params)
