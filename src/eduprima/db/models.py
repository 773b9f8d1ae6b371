"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Table names follow the hosted database the dashboard grew up on
(users_universal, tutor_details, tutor_status), so the same schema can
be pointed at directly.

Types are kept portable (sqlalchemy.Uuid, DateTime(timezone=True)) so the
test suite can run against SQLite while production runs on PostgreSQL.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from eduprima.tutor_status import STATUS_MAX_LENGTH


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════


class RoleDefinition(Base):
    """A role row as stored in the database.

    Learn: role_code is the raw database label ("admin", "tutor_manager",
    ...). The auth service maps it onto the two dashboard roles; anything
    that doesn't map is refused at login.
    """

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    role_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class UserAccount(Base):
    """A dashboard or platform account."""

    __tablename__ = "users_universal"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    user_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active"
    )
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    primary_role_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("roles.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    primary_role: Mapped[Optional["RoleDefinition"]] = relationship(lazy="joined")


# ══════════════════════════════════════════════════════════════
# Tutors
# ══════════════════════════════════════════════════════════════


class TutorDetail(Base):
    """Tutor profile anchor. The status API addresses tutors by user_id."""

    __tablename__ = "tutor_details"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users_universal.id"),
        unique=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TutorStatus(Base):
    """Management record: one status row per tutor, with audit stamps.

    Learn: tutor_id is UNIQUE — the upsert in TutorStatusService relies
    on it as the ON CONFLICT target, which is what guarantees a single
    row per tutor even under concurrent writers.
    """

    __tablename__ = "tutor_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tutor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tutor_details.id"),
        unique=True,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(STATUS_MAX_LENGTH), nullable=False)
    status_changed_by: Mapped[str] = mapped_column(String(64), nullable=False)
    last_status_change: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
