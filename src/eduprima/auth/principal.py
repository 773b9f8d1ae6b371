"""Principal — the authenticated actor behind a request.

Learn: Both session systems carry the same user payload shape, but field
names drifted over time (snake_case from the legacy cookie, camelCase
from the managed session). principal_from_payload() accepts either and
refuses anything whose role is outside the Role enum, so every principal
the resolver hands out has a known role.
"""

import enum
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from eduprima.errors import MalformedSessionData


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    DATABASE_TUTOR_MANAGER = "database_tutor_manager"


ALLOWED_ROLES = frozenset(r.value for r in Role)


@dataclass(frozen=True)
class Principal:
    """Authenticated actor. `role` is a plain string so authorization can
    stay total over whatever a caller hands it."""

    id: str
    email: str
    role: str
    primary_role: str = ""
    account_type: str = ""
    user_code: str = ""
    role_name: str = ""

    def has_role(self, role: Role | str) -> bool:
        value = role.value if isinstance(role, Role) else role
        return self.role == value

    def to_payload(self) -> dict[str, str]:
        """Serialize for session tokens and API responses."""
        return asdict(self)


def _pick(payload: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return str(value)
    return ""


def principal_from_payload(payload: Optional[Mapping[str, Any]]) -> Principal:
    """Build a Principal from a session user payload.

    Raises MalformedSessionData when the payload is not a mapping, has no
    id, or carries a role outside ALLOWED_ROLES.
    """
    if not isinstance(payload, Mapping):
        raise MalformedSessionData("session user is not an object")

    user_id = _pick(payload, "id")
    if not user_id:
        raise MalformedSessionData("session user has no id")

    role = _pick(payload, "role")
    if role not in ALLOWED_ROLES:
        raise MalformedSessionData(f"unsupported role: {role or '<none>'}")

    return Principal(
        id=user_id,
        email=_pick(payload, "email"),
        role=role,
        primary_role=_pick(payload, "primary_role", "primaryRole"),
        account_type=_pick(payload, "account_type", "accountType"),
        user_code=_pick(payload, "user_code", "userCode"),
        role_name=_pick(payload, "role_name"),
    )
