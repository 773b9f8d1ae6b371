"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to turn the
request's session evidence into a principal and to enforce the gate.

Session evidence, in precedence order:
1. Managed session token — "Authorization: Bearer ..." or the
   authjs.session-token cookie
2. Legacy auth-session cookie

A server-side request never sees the managed session "loading", so
resolution here is always determined.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request

from eduprima.auth.gate import authorize
from eduprima.auth.principal import Principal
from eduprima.auth.resolver import IdentityResolver, LegacyTokenSource, ManagedTokenSource
from eduprima.config import settings
from eduprima.errors import Forbidden, Unauthenticated

logger = structlog.get_logger()


def _bearer_token(header: Optional[str]) -> Optional[str]:
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def resolver_for_request(request: Request) -> IdentityResolver:
    """Build the resolver for one request's session evidence."""
    managed = _bearer_token(request.headers.get("authorization")) or request.cookies.get(
        settings.session_cookie_name
    )
    legacy = request.cookies.get(settings.legacy_session_cookie_name)
    return IdentityResolver([ManagedTokenSource(managed), LegacyTokenSource(legacy)])


async def get_current_principal_optional(request: Request) -> Optional[Principal]:
    """Resolve the principal — returns None if there is no session.

    Learn: The "soft" dependency, for endpoints that answer both signed-in
    and anonymous callers (e.g. the access check).
    """
    resolution = resolver_for_request(request).resolve()
    if resolution.principal is not None:
        structlog.contextvars.bind_contextvars(
            user_id=resolution.principal.id, auth_source=resolution.source
        )
    return resolution.principal


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_current_principal_optional),
) -> Principal:
    """Resolve the principal — 401 if there is no session."""
    if principal is None:
        raise Unauthenticated()
    return principal


def require_access(path: str):
    """Dependency factory: the principal must be allowed to reach `path`.

    Learn: API routes declare the dashboard area they belong to, e.g. the
    tutor status endpoints sit under the tutor database route, so a
    database_tutor_manager passes and any other restricted role gets 403.
    """

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not authorize(principal, path):
            logger.info("auth.access_denied", user_id=principal.id, role=principal.role, path=path)
            raise Forbidden("Access to this resource is not allowed for your role")
        return principal

    return dependency
