"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
"""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from directline.config import settings
from directline.db.models import Base


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine for `url`.

    Learn: SQLite only enforces foreign keys when asked to, per connection.
    Postgres always does. The pragma keeps both backends equally strict.
    """
    if make_url(url).get_backend_name() == "sqlite":
        new_engine = create_async_engine(url, echo=settings.debug, **kwargs)

        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    # Connection pool: min 5, max 20 connections.
    # echo=True in dev to see SQL queries.
    kwargs.setdefault("pool_size", 5)
    kwargs.setdefault("max_overflow", 15)
    return create_async_engine(url, echo=settings.debug, **kwargs)


engine = build_engine(settings.database_url)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
