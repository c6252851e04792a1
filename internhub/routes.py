"""Route Registry.

Central table of application paths.  The access gate queries this
registry to decide which view a path renders and which roles may reach
it.

Adding a route = one ``register()`` call.  Patterns are literal segments
with ``:name`` placeholders, e.g. ``/application/:applicationId``.
"""

from __future__ import annotations

from typing import Optional

from internhub.logger import StructuredLogger
from internhub.models.enums import UserRole


def normalize_path(path: str) -> str:
    """Strip query string, fragment and trailing slash; ensure a leading slash."""
    bare = path.split("?", 1)[0].split("#", 1)[0].strip()
    bare = "/" + bare.strip("/")
    return bare


class RouteEntry:
    """Metadata for a single registered route.

    Attributes
    ----------
    pattern:
        Path pattern (e.g. ``'/student/:studentId'``).
    view:
        Name of the view rendered for this route.
    allowed_roles:
        Roles that may reach the route, or ``None`` for any signed-in role.
    public:
        ``True`` for routes reachable only while signed out (login, register).
    """

    __slots__ = ("pattern", "view", "allowed_roles", "public", "_segments")

    def __init__(
        self,
        pattern: str,
        view: str,
        allowed_roles: Optional[frozenset[UserRole]],
        public: bool,
    ) -> None:
        self.pattern = normalize_path(pattern)
        self.view = view
        self.allowed_roles = allowed_roles
        self.public = public
        self._segments: tuple[str, ...] = tuple(s for s in self.pattern.split("/") if s)

    def match(self, path: str) -> Optional[dict[str, str]]:
        """Return extracted ``:name`` parameters when *path* matches, else ``None``."""
        segments = [s for s in normalize_path(path).split("/") if s]
        if len(segments) != len(self._segments):
            return None
        params: dict[str, str] = {}
        for expected, actual in zip(self._segments, segments):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params


class RouteRegistry:
    """Ordered collection of routes; first match wins."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._entries: dict[str, RouteEntry] = {}
        self._logger = logger

    def register(
        self,
        pattern: str,
        view: str,
        allowed_roles: Optional[frozenset[UserRole]] = None,
        *,
        public: bool = False,
    ) -> None:
        entry = RouteEntry(pattern, view, allowed_roles, public)
        if entry.pattern in self._entries:
            self._logger.warning("Route '%s' already registered; overwriting.", entry.pattern)
        self._entries[entry.pattern] = entry
        self._logger.debug("Route registered: %s -> %s", entry.pattern, view)

    def match(self, path: str) -> tuple[Optional[RouteEntry], dict[str, str]]:
        """Return the first entry matching *path* and its parameters."""
        for entry in self._entries.values():
            params = entry.match(path)
            if params is not None:
                return entry, params
        return None, {}

    def routes_for_role(self, role: UserRole) -> list[RouteEntry]:
        """Routes a signed-in *role* may reach, in registration order."""
        return [
            entry
            for entry in self._entries.values()
            if not entry.public
            and (entry.allowed_roles is None or role in entry.allowed_roles)
        ]


HOME_PATH: str = "/"
LOGIN_PATH: str = "/login"

STUDENT_ONLY: frozenset[UserRole] = frozenset({UserRole.STUDENT})
COMPANY_ONLY: frozenset[UserRole] = frozenset({UserRole.COMPANY})
ADMIN_ONLY: frozenset[UserRole] = frozenset({UserRole.ADMIN})


def build_default_routes(logger: StructuredLogger) -> RouteRegistry:
    """Register the application's route table."""
    registry = RouteRegistry(logger)
    registry.register(LOGIN_PATH, "login", public=True)
    registry.register("/register", "register", public=True)

    registry.register(HOME_PATH, "dashboard")
    registry.register("/profile", "profile")
    registry.register("/messages", "messages")
    registry.register("/student/:studentId", "student_profile")

    registry.register("/application/:applicationId", "application_tracking", STUDENT_ONLY)
    registry.register("/convention", "convention", STUDENT_ONLY)
    registry.register("/evaluations", "evaluations", STUDENT_ONLY)
    registry.register("/candidates", "candidates", COMPANY_ONLY)
    registry.register("/reports", "reports", ADMIN_ONLY)
    registry.register("/conventions", "conventions_admin", ADMIN_ONLY)
    return registry
