"""Identity resolver tests.

Learn: Tests cover:
1. Managed session precedence (loading → undetermined, user wins)
2. Fallback to the persisted record once the managed session settles
3. Malformed persisted data → no principal, never an exception
4. Principal payload parsing (aliases, unknown roles)
5. Token-backed sources (managed token, legacy cookie, expiry, wrong key)
"""

import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from eduprima.auth.principal import Principal, principal_from_payload
from eduprima.auth.resolver import (
    IdentityResolver,
    LegacyTokenSource,
    ManagedSession,
    ManagedTokenSource,
    PersistedPrincipal,
    ResolutionStatus,
    SessionStatus,
    SourceState,
)
from eduprima.auth.tokens import TokenError, create_session_token, verify_session_token
from eduprima.config import settings
from eduprima.errors import MalformedSessionData

MANAGED_USER = {
    "id": "managed-1",
    "email": "admin@eduprima.id",
    "role": "super_admin",
    "primaryRole": "admin",
    "accountType": "staff",
}
LEGACY_USER = {
    "id": "legacy-1",
    "email": "manager@eduprima.id",
    "role": "database_tutor_manager",
    "primary_role": "tutor_manager",
    "account_type": "staff",
}


def _resolve(managed: ManagedSession, persisted: str | None):
    return IdentityResolver([managed, PersistedPrincipal(persisted)]).resolve()


def _legacy_token(user: dict, expires_in: timedelta = timedelta(days=1), secret=None) -> str:
    payload = {"user": user, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, secret or settings.effective_legacy_secret, algorithm="HS256")


# ═══════════════════════════════════════════════════════════
# Precedence
# ═══════════════════════════════════════════════════════════


def test_loading_is_undetermined_even_with_persisted_user():
    result = _resolve(ManagedSession(SessionStatus.LOADING), json.dumps(LEGACY_USER))
    assert result.status == ResolutionStatus.UNDETERMINED
    assert result.principal is None
    assert result.determined is False


def test_loading_with_user_payload_is_still_undetermined():
    result = _resolve(ManagedSession(SessionStatus.LOADING, MANAGED_USER), None)
    assert result.status == ResolutionStatus.UNDETERMINED


def test_managed_user_wins_over_persisted():
    result = _resolve(
        ManagedSession(SessionStatus.AUTHENTICATED, MANAGED_USER),
        json.dumps(LEGACY_USER),
    )
    assert result.status == ResolutionStatus.AUTHENTICATED
    assert result.principal.id == "managed-1"
    assert result.source == "managed"


def test_falls_back_to_persisted_when_unauthenticated():
    result = _resolve(ManagedSession(SessionStatus.UNAUTHENTICATED), json.dumps(LEGACY_USER))
    assert result.status == ResolutionStatus.AUTHENTICATED
    assert result.principal.id == "legacy-1"
    assert result.principal.role == "database_tutor_manager"
    assert result.source == "persisted"


def test_no_sources_yield_anonymous():
    result = _resolve(ManagedSession(SessionStatus.UNAUTHENTICATED), None)
    assert result.status == ResolutionStatus.ANONYMOUS
    assert result.principal is None
    assert result.determined is True


def test_empty_resolver_is_anonymous():
    assert IdentityResolver([]).resolve().status == ResolutionStatus.ANONYMOUS


# ═══════════════════════════════════════════════════════════
# Malformed data
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "null",
        "[]",
        '"just a string"',
        json.dumps({"email": "no-id@eduprima.id", "role": "super_admin"}),
        json.dumps({**LEGACY_USER, "role": "tutor"}),
    ],
)
def test_malformed_persisted_record_is_no_principal(raw):
    result = _resolve(ManagedSession(SessionStatus.UNAUTHENTICATED), raw)
    assert result.status == ResolutionStatus.ANONYMOUS
    assert result.principal is None


def test_malformed_managed_user_falls_through_to_persisted():
    bad = {**MANAGED_USER, "role": "student"}
    result = _resolve(
        ManagedSession(SessionStatus.AUTHENTICATED, bad),
        json.dumps(LEGACY_USER),
    )
    assert result.principal.id == "legacy-1"


def test_persisted_record_is_not_modified():
    raw = json.dumps(LEGACY_USER)
    source = PersistedPrincipal(raw)
    source.lookup()
    assert source.raw == raw


# ═══════════════════════════════════════════════════════════
# Principal parsing
# ═══════════════════════════════════════════════════════════


def test_principal_accepts_camel_case_aliases():
    p = principal_from_payload(MANAGED_USER)
    assert p.primary_role == "admin"
    assert p.account_type == "staff"


def test_principal_rejects_unknown_role():
    with pytest.raises(MalformedSessionData):
        principal_from_payload({"id": "x", "role": "tutor"})


def test_principal_round_trips_through_payload():
    p = principal_from_payload(LEGACY_USER)
    assert principal_from_payload(p.to_payload()) == p


# ═══════════════════════════════════════════════════════════
# Token sources
# ═══════════════════════════════════════════════════════════


def test_managed_token_source_found():
    principal = Principal(id="p-1", email="a@eduprima.id", role="super_admin")
    lookup = ManagedTokenSource(create_session_token(principal)).lookup()
    assert lookup.state == SourceState.FOUND
    assert lookup.principal == principal


def test_managed_token_source_rejects_garbage():
    assert ManagedTokenSource("not-a-jwt").lookup().state == SourceState.ABSENT
    assert ManagedTokenSource(None).lookup().state == SourceState.ABSENT


def test_legacy_token_is_not_a_managed_session():
    token = _legacy_token(LEGACY_USER)
    with pytest.raises(TokenError):
        verify_session_token(token)


def test_legacy_token_source_found():
    lookup = LegacyTokenSource(_legacy_token(LEGACY_USER)).lookup()
    assert lookup.state == SourceState.FOUND
    assert lookup.principal.id == "legacy-1"


def test_legacy_token_expired_is_absent():
    token = _legacy_token(LEGACY_USER, expires_in=timedelta(seconds=-10))
    assert LegacyTokenSource(token).lookup().state == SourceState.ABSENT


def test_legacy_token_wrong_secret_is_absent():
    token = _legacy_token(LEGACY_USER, secret="some-other-secret")
    assert LegacyTokenSource(token).lookup().state == SourceState.ABSENT


def test_managed_token_takes_precedence_over_legacy_cookie():
    principal = Principal(id="p-1", email="a@eduprima.id", role="super_admin")
    resolver = IdentityResolver([
        ManagedTokenSource(create_session_token(principal)),
        LegacyTokenSource(_legacy_token(LEGACY_USER)),
    ])
    result = resolver.resolve()
    assert result.principal.id == "p-1"
    assert result.source == "managed"


def test_invalid_managed_token_falls_back_to_legacy_cookie():
    resolver = IdentityResolver([
        ManagedTokenSource("expired-or-forged"),
        LegacyTokenSource(_legacy_token(LEGACY_USER)),
    ])
    result = resolver.resolve()
    assert result.principal.id == "legacy-1"
    assert result.source == "legacy"
