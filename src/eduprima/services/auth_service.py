"""Credential login — email/password → dashboard principal.

Learn: Database role codes don't match the dashboard roles one-to-one.
They are mapped here, and only the two dashboard roles may sign in:

    admin                  → super_admin
    database_tutor_manager → database_tutor_manager
    tutor_manager          → database_tutor_manager

Any other role (tutors, students, ...) is refused even with a correct
password, so a principal minted by login always has a known role.
"""

from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eduprima.auth.password import verify_password
from eduprima.auth.principal import ALLOWED_ROLES, Principal, Role
from eduprima.db.models import UserAccount
from eduprima.errors import StorageError, Unauthenticated

logger = structlog.get_logger()

ROLE_CODE_MAP = {
    "admin": Role.SUPER_ADMIN.value,
    "super_admin": Role.SUPER_ADMIN.value,
    "database_tutor_manager": Role.DATABASE_TUTOR_MANAGER.value,
    "tutor_manager": Role.DATABASE_TUTOR_MANAGER.value,
}


def map_role_code(role_code: Optional[str]) -> Optional[str]:
    """Dashboard role for a database role code, or None if not allowed."""
    mapped = ROLE_CODE_MAP.get((role_code or "").strip().lower())
    return mapped if mapped in ALLOWED_ROLES else None


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(self, email: str, password: str) -> Principal:
        """Verify credentials and return the principal.

        Every failure is the same Unauthenticated("Invalid credentials")
        so callers can't tell which accounts exist.
        """
        email = (email or "").strip().lower()
        try:
            user = await self.db.scalar(
                select(UserAccount).where(
                    func.lower(UserAccount.email) == email,
                    UserAccount.user_status == "active",
                )
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

        if not user or not user.password_hash:
            logger.info("auth.login_rejected", reason="unknown_or_inactive")
            raise Unauthenticated("Invalid credentials")

        if not verify_password(password or "", user.password_hash):
            logger.info("auth.login_rejected", reason="bad_password", user_id=str(user.id))
            raise Unauthenticated("Invalid credentials")

        role_def = user.primary_role
        role_code = role_def.role_code if role_def else None
        role = map_role_code(role_code)
        if role is None:
            logger.warning(
                "auth.login_rejected",
                reason="role_not_allowed",
                user_id=str(user.id),
                role_code=role_code,
            )
            raise Unauthenticated("Invalid credentials")

        logger.info("auth.login_succeeded", user_id=str(user.id), role=role)
        return Principal(
            id=str(user.id),
            email=user.email,
            role=role,
            primary_role=role_code or "",
            account_type=user.account_type or "",
            user_code=user.user_code or "",
            role_name=role_def.role_name if role_def else "",
        )
