"""Database session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cortex.core.config import settings


def get_database_url() -> str:
    """Get the database URL, ensuring the SQLite directory exists."""
    if settings.database_url:
        return settings.database_url

    db_path = settings.db_path
    if not db_path.parent.exists():
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # Fall back to local directory for development
            db_path = Path("./config") / db_path.name
            db_path.parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite+aiosqlite:///{db_path}"


def is_sqlite_url(url: str) -> bool:
    """Check whether a database URL targets SQLite."""
    return url.startswith("sqlite")


def create_engine_for_url(url: str) -> AsyncEngine:
    """Create an async engine, applying SQLite concurrency pragmas when needed."""
    if is_sqlite_url(url):
        async_engine = create_async_engine(
            url,
            echo=settings.debug,
            connect_args={"timeout": 30},
        )

        @event.listens_for(async_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enable WAL mode and foreign keys on each connection."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return async_engine

    return create_async_engine(url, echo=settings.debug, pool_pre_ping=True)


engine = create_engine_for_url(get_database_url())

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Yields:
        An async database session, committed when the request succeeds.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
