"""Identity resolution across coexisting session sources.

Learn: The dashboard has two session systems: the managed session
provider and the legacy persisted user record / auth-session cookie.
Instead of branching on them at every call site, each one is a
SessionSource strategy reporting one of three states:

- PENDING: the source has not settled yet (managed session "loading")
- FOUND:   the source yields a principal
- ABSENT:  nothing usable here (missing, expired, malformed)

IdentityResolver walks its sources in precedence order. A PENDING source
stops the walk with an UNDETERMINED result — we never fall through to
stale local data while the authoritative source is still loading.
Malformed evidence is logged and counted as ABSENT; resolve() never raises.
"""

import enum
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

import structlog

from eduprima.auth.principal import Principal, principal_from_payload
from eduprima.auth.tokens import TokenError, verify_legacy_token, verify_session_token
from eduprima.errors import MalformedSessionData

logger = structlog.get_logger()


class SourceState(str, enum.Enum):
    PENDING = "pending"
    FOUND = "found"
    ABSENT = "absent"


@dataclass(frozen=True)
class Lookup:
    state: SourceState
    principal: Optional[Principal] = None


PENDING = Lookup(SourceState.PENDING)
ABSENT = Lookup(SourceState.ABSENT)


def _found(payload: Any, source: str) -> Lookup:
    try:
        return Lookup(SourceState.FOUND, principal_from_payload(payload))
    except MalformedSessionData as e:
        logger.warning("auth.malformed_session", source=source, error=str(e))
        return ABSENT


class SessionSource(Protocol):
    name: str

    def lookup(self) -> Lookup: ...


# ─── Sources ─────────────────────────────────────────────


class SessionStatus(str, enum.Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class ManagedSession:
    """Snapshot of the managed session provider."""

    status: SessionStatus
    user: Optional[Mapping[str, Any]] = None
    name: str = "managed"

    def lookup(self) -> Lookup:
        if self.status == SessionStatus.LOADING:
            return PENDING
        if self.status != SessionStatus.AUTHENTICATED or self.user is None:
            return ABSENT
        return _found(self.user, self.name)


@dataclass(frozen=True)
class PersistedPrincipal:
    """A JSON-encoded user record persisted by the legacy login flow."""

    raw: Optional[str]
    name: str = "persisted"

    def lookup(self) -> Lookup:
        if not self.raw:
            return ABSENT
        try:
            payload = json.loads(self.raw)
        except ValueError as e:
            logger.warning("auth.malformed_session", source=self.name, error=str(e))
            return ABSENT
        return _found(payload, self.name)


@dataclass(frozen=True)
class ManagedTokenSource:
    """Managed session token from a bearer header or session cookie."""

    token: Optional[str]
    name: str = "managed"

    def session(self) -> ManagedSession:
        if not self.token:
            return ManagedSession(SessionStatus.UNAUTHENTICATED)
        try:
            payload = verify_session_token(self.token)
        except TokenError as e:
            logger.info("auth.session_token_rejected", error=str(e))
            return ManagedSession(SessionStatus.UNAUTHENTICATED)
        return ManagedSession(SessionStatus.AUTHENTICATED, payload.get("user"))

    def lookup(self) -> Lookup:
        return self.session().lookup()


@dataclass(frozen=True)
class LegacyTokenSource:
    """The legacy auth-session cookie."""

    token: Optional[str]
    name: str = "legacy"

    def lookup(self) -> Lookup:
        if not self.token:
            return ABSENT
        try:
            payload = verify_legacy_token(self.token)
        except TokenError as e:
            logger.info("auth.legacy_token_rejected", error=str(e))
            return ABSENT
        return _found(payload.get("user"), self.name)


# ─── Resolver ────────────────────────────────────────────


class ResolutionStatus(str, enum.Enum):
    UNDETERMINED = "undetermined"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    principal: Optional[Principal] = None
    source: Optional[str] = None

    @property
    def determined(self) -> bool:
        return self.status != ResolutionStatus.UNDETERMINED


UNDETERMINED = Resolution(ResolutionStatus.UNDETERMINED)
ANONYMOUS = Resolution(ResolutionStatus.ANONYMOUS)


class IdentityResolver:
    """Resolve the current principal from sources in precedence order."""

    def __init__(self, sources: Sequence[SessionSource]):
        self.sources = tuple(sources)

    def resolve(self) -> Resolution:
        for source in self.sources:
            result = source.lookup()
            if result.state == SourceState.PENDING:
                return UNDETERMINED
            if result.state == SourceState.FOUND:
                logger.debug(
                    "auth.principal_resolved",
                    source=source.name,
                    user_id=result.principal.id,
                )
                return Resolution(
                    ResolutionStatus.AUTHENTICATED, result.principal, source.name
                )
        return ANONYMOUS
