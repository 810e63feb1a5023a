"""Async Engine Factory — engines and session factories for direct usage.

Invariants:
    - SQLite engines never receive pool sizing arguments (their pools reject them)
    - Session factories use expire_on_commit=False

Design Decisions:
    - Separate from infrastructure/database.py: scripts and test fixtures need a raw
      engine/session factory without the error-mapping manager
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)


def create_engine_for_url(
    database_url: str, pool_size: int = 5, max_overflow: int = 5,
) -> AsyncEngine:
    """Create an async engine, applying pool sizing only where the dialect supports it."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_async_engine(database_url, echo=False)
    return create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
