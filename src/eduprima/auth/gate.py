"""Authorization gate — role → dashboard path rules.

Learn: The rule table is tiny and read-only:
- super_admin: everything
- database_tutor_manager: only the tutor database area

Paths are compared by segment, not by substring. The query string and
fragment are dropped, percent-escapes decoded and "." / ".." segments
resolved first, so ".../em/matchmaking/database-tutor/../../engagement"
is judged as the engagement page it really opens. Then the rule's
segments must appear as a contiguous run in the request's segments.
That keeps locale-prefixed paths ("/en/eduprima/...") working while refusing look-alike siblings
("database-tutor-archive") and paths smuggled into a query parameter.
"""

import posixpath
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

from eduprima.auth.principal import Principal, Role

TUTOR_DATABASE_ROUTE = "/eduprima/main/ops/em/matchmaking/database-tutor"
DASHBOARD_SEGMENT = "eduprima"

LOGIN_PATH = "/en/auth/login"
UNAUTHORIZED_PATH = "/en/auth/login?error=unauthorized"
TUTOR_DATABASE_HOME = f"/en{TUTOR_DATABASE_ROUTE}/view-all"

# None means unrestricted.
ROLE_RULES: dict[str, Optional[tuple[str, ...]]] = {
    Role.SUPER_ADMIN.value: None,
    Role.DATABASE_TUTOR_MANAGER.value: (TUTOR_DATABASE_ROUTE,),
}

# Reachable by any signed-in dashboard user regardless of role.
SELF_SERVICE_ROUTES = ("/eduprima/main/profile",)


def _segments(path: str) -> list[str]:
    raw = unquote(urlsplit(path or "").path)
    if not raw:
        return []
    return [s for s in posixpath.normpath(raw).split("/") if s and s != "."]


def path_within(path: str, route: str) -> bool:
    """True if `route`'s segments occur contiguously in `path`'s segments."""
    haystack = _segments(path)
    needle = _segments(route)
    if not needle:
        return True
    # A relative path that climbs above its start has no fixed location.
    if ".." in haystack:
        return False
    width = len(needle)
    return any(
        haystack[i:i + width] == needle
        for i in range(len(haystack) - width + 1)
    )


def authorize(principal: Optional[Principal], path: str) -> bool:
    """Allow/deny `principal` access to `path`. Unknown roles are denied."""
    if principal is None:
        return False
    role = getattr(principal, "role", None)
    if role not in ROLE_RULES:
        return False
    routes = ROLE_RULES[role]
    if routes is None:
        return True
    return any(path_within(path, route) for route in routes)


def has_role(principal: Optional[Principal], role: Role | str) -> bool:
    return principal is not None and principal.has_role(role)


# ─── Dashboard navigation ────────────────────────────────


@dataclass(frozen=True)
class RouteDecision:
    allowed: bool
    redirect: Optional[str] = None


def is_dashboard_path(path: str) -> bool:
    return DASHBOARD_SEGMENT in _segments(path)


def route_decision(principal: Optional[Principal], path: str) -> RouteDecision:
    """Where a dashboard navigation to `path` should go.

    Non-dashboard paths always pass. Otherwise: anonymous → login,
    allowed → pass, restricted roles → their home area, unknown roles →
    login with an "unauthorized" marker.
    """
    if not is_dashboard_path(path):
        return RouteDecision(allowed=True)
    if principal is None:
        return RouteDecision(allowed=False, redirect=LOGIN_PATH)
    if authorize(principal, path):
        return RouteDecision(allowed=True)
    if principal.role not in ROLE_RULES:
        return RouteDecision(allowed=False, redirect=UNAUTHORIZED_PATH)
    if any(path_within(path, route) for route in SELF_SERVICE_ROUTES):
        return RouteDecision(allowed=True)
    return RouteDecision(allowed=False, redirect=TUTOR_DATABASE_HOME)
