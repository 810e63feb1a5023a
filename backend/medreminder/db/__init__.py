"""Database Infrastructure — async session factory and SQLAlchemy Base.

Invariants:
    - All sessions are async (AsyncSession)
    - Engines are created explicitly by their owner, never at import time

Design Decisions:
    - aiosqlite driver for the local store, asyncpg for PostgreSQL deployments
"""
