"""Test fixtures — a fresh database per test, app dependencies overridden.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine with the schema created from the models.
   By default that's an in-memory SQLite (aiosqlite, StaticPool so every
   session shares the one connection). Point EDUPRIMA_TEST_DATABASE_URL
   at a scratch PostgreSQL database to run the same suite there.
2. The app's get_db is overridden to hand out the test's session, so
   tests can seed rows and inspect what the API wrote.
3. `client` also overrides get_current_principal with a super admin, so
   routes work without real tokens. `unauthenticated_client` leaves auth
   alone for tests that exercise real session tokens and cookies.
"""

import os
import uuid
from typing import Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from eduprima.auth.password import hash_password
from eduprima.auth.principal import Principal, Role
from eduprima.auth.tokens import create_session_token
from eduprima.db.engine import get_db
from eduprima.db.models import Base, RoleDefinition, TutorDetail, UserAccount
from eduprima.main import app

TEST_DB_URL = os.environ.get("EDUPRIMA_TEST_DATABASE_URL", "sqlite+aiosqlite://")

PASSWORD = "tutor-db-pass"
PASSWORD_HASH = hash_password(PASSWORD)

SUPER_ADMIN = Principal(
    id="00000000-0000-0000-0000-000000000001",
    email="admin@eduprima.id",
    role=Role.SUPER_ADMIN.value,
    primary_role="admin",
    account_type="staff",
)
TUTOR_MANAGER = Principal(
    id="00000000-0000-0000-0000-000000000002",
    email="manager@eduprima.id",
    role=Role.DATABASE_TUTOR_MANAGER.value,
    primary_role="tutor_manager",
    account_type="staff",
)


def bearer(principal: Principal) -> dict:
    return {"Authorization": f"Bearer {create_session_token(principal)}"}


@pytest_asyncio.fixture()
async def db_engine():
    kwargs = {}
    if TEST_DB_URL.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    engine = create_async_engine(TEST_DB_URL, **kwargs)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with get_db and the principal overridden (super admin)."""
    from eduprima.auth.dependencies import get_current_principal

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_principal] = lambda: SUPER_ADMIN

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(db_session):
    """HTTP client WITHOUT the principal override — real session tokens."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Seed helpers ────────────────────────────────────────


async def _role(db, role_code: str) -> RoleDefinition:
    role = await db.scalar(select(RoleDefinition).where(RoleDefinition.role_code == role_code))
    if role is None:
        role = RoleDefinition(role_code=role_code, role_name=role_code.replace("_", " ").title())
        db.add(role)
        await db.flush()
    return role


async def make_user(
    db,
    *,
    email: Optional[str] = None,
    role_code: Optional[str] = "admin",
    user_status: str = "active",
    password_hash: Optional[str] = PASSWORD_HASH,
) -> UserAccount:
    role = await _role(db, role_code) if role_code else None
    user = UserAccount(
        email=email or f"user-{uuid.uuid4().hex[:8]}@eduprima.id",
        user_code=f"U{uuid.uuid4().hex[:6].upper()}",
        user_status=user_status,
        password_hash=password_hash,
        account_type="staff",
        primary_role_id=role.id if role else None,
    )
    db.add(user)
    await db.commit()
    return user


async def make_tutor(db) -> tuple[str, uuid.UUID]:
    """Create a tutor account; returns (user_id as str, tutor_details.id)."""
    user = await make_user(db, role_code="tutor", password_hash=None)
    tutor = TutorDetail(user_id=user.id)
    db.add(tutor)
    await db.commit()
    return str(user.id), tutor.id
