"""
Report Come Play Backend — Database Session Management
========================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One engine with connection pooling per process; one session per request
       that commits on success and rolls back on error.
Who:   Route handlers (via Depends), the seed script and Alembic.

Connection Pooling:
    pool_size / max_overflow come from settings. pool_pre_ping validates
    connections before use and pool_recycle drops them after an hour, so a
    database restart does not surface as "connection reset" errors.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from reportcomeplay.config import settings


def _engine_options() -> dict:
    options = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    # SQLite (tests, local hacking) has no server-side pool to size
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False keeps loaded attributes readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    --autogenerate and the test suite uses for create_all().
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/fields")
        async def list_fields(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
