"""Auth API — login, logout, current session, access checks.

Learn: Routes:
- POST /auth/login → email/password → managed session token (+ cookie)
- POST /auth/logout → clear both session cookies
- GET /auth/session → the resolved principal
- GET /auth/access?path=... → may the current principal open this
  dashboard path, and where to send them if not
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from eduprima.auth.dependencies import get_current_principal, get_current_principal_optional
from eduprima.auth.gate import route_decision
from eduprima.auth.principal import Principal
from eduprima.auth.tokens import create_session_token
from eduprima.config import settings
from eduprima.db.engine import get_db
from eduprima.errors import ValidationError
from eduprima.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SessionRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


# ─── Login / logout ──────────────────────────────────────


def _cookie_secure() -> bool:
    return settings.environment != "development"


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password → managed session token."""
    if not body.email or "@" not in body.email or not body.password or len(body.password) < 4:
        raise ValidationError("A valid email and password are required")

    principal = await AuthService(db).authenticate(body.email, body.password)
    token = create_session_token(principal)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=_cookie_secure(),
        samesite="lax",
        path="/",
    )
    data = SessionRead(
        access_token=token,
        expires_in=settings.session_max_age_seconds,
        user=principal.to_payload(),
    )
    return {"success": True, "data": data.model_dump()}


@router.post("/logout")
async def logout(response: Response):
    """Clear managed and legacy session cookies."""
    for name in (settings.session_cookie_name, settings.legacy_session_cookie_name):
        response.delete_cookie(name, path="/")
    return {"success": True}


# ─── Session ─────────────────────────────────────────────


@router.get("/session")
async def get_session(principal: Principal = Depends(get_current_principal)):
    """Get the current principal."""
    return {"success": True, "data": {"user": principal.to_payload()}}


@router.get("/access")
async def check_access(
    path: str = Query(..., description="Dashboard path to check"),
    principal: Optional[Principal] = Depends(get_current_principal_optional),
):
    """Navigation decision for `path` — works for anonymous callers too."""
    decision = route_decision(principal, path)
    return {
        "success": True,
        "data": {"allowed": decision.allowed, "redirect": decision.redirect},
    }
