"""Session token creation and verification.

Learn: Two kinds of signed JWT reach the API:
- Managed session token: issued by POST /api/auth/login, carries the
  user payload under the "user" claim, 30-day expiry.
- Legacy session token: the old "auth-session" cookie. We only verify
  these (nothing issues them anymore); the payload shape is the same.

Both are HS256 and must carry "exp". Verification never returns a
partially-checked payload — any problem raises TokenError.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from eduprima.auth.principal import Principal
from eduprima.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_session_token(
    principal: Principal,
    expires_days: Optional[int] = None,
) -> str:
    """Create a managed session token for a principal."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(days=expires_days or settings.session_max_age_days)
    payload = {
        "sub": principal.id,
        "type": "session",
        "user": principal.to_payload(),
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str) -> dict:
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")


def verify_session_token(token: str) -> dict:
    """Verify and decode a managed session token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    payload = _decode(token, settings.session_secret)
    if payload.get("type") != "session":
        raise TokenError("Not a session token")
    return payload


def verify_legacy_token(token: str) -> dict:
    """Verify and decode a legacy auth-session cookie token."""
    return _decode(token, settings.effective_legacy_secret)
