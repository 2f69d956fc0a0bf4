"""Async database configuration and session management."""

from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    All models should inherit from this class to be included
    in migrations and have access to common functionality.
    """

    pass


def _engine_options(url: str) -> Dict[str, Any]:
    """Build engine keyword arguments for the configured backend."""
    options: Dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    # SQLite (local runs and tests) opens a connection per session
    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
    else:
        options.update(pool_size=5, max_overflow=10)
    return options


# Create async engine with connection pooling
engine = create_async_engine(
    settings.DATABASE_URL,
    **_engine_options(settings.DATABASE_URL),
)

# Session factory for creating async sessions
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    Yields:
        AsyncSession: Database session for the request.

    Example:
        @router.get("/audits/{slug}")
        async def get_audit(slug: str, db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(SavedAudit).where(...))
            return result.scalar_one_or_none()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """Test database connectivity.

    Returns:
        bool: True if database is reachable, False otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception:
        return False
