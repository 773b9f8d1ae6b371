"""Async SQLAlchemy engine and session factory.

Learn: One engine per process, one AsyncSession per request (get_db).
Production runs PostgreSQL through asyncpg; SQLite URLs (local tinkering,
the test suite) skip the pool sizing that only applies to server pools.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from eduprima.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    kwargs: dict = {"echo": echo}
    if make_url(url).get_backend_name() == "postgresql":
        kwargs.update(pool_size=5, max_overflow=15, pool_pre_ping=True)
    return create_async_engine(url, **kwargs)


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        yield session
