"""
Async PostgreSQL connection pool module for the analytics rollup engine.

This module provides an async PostgreSQL connection pool using asyncpg. It is
the single point through which the source readers and the summary store reach
the database.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool

Connection Pool Configuration (from Settings):
- min_size: db_pool_min_size (default 2)
- max_size: db_pool_max_size (default 10)
- command_timeout: db_command_timeout (default 60 seconds)

Usage:
    await init_db()

    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT id, title FROM projects")

    await close_db()

The rollup worker pool shares this connection pool; keep
rollup_concurrency at or below db_pool_max_size or workers will queue on
pool.acquire().
"""

from typing import Optional

import asyncpg
from asyncpg import Pool

from rollup_engine.core.config import get_settings


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    If the pool is already initialized, this function returns the existing pool
    without creating a new one (idempotent behavior).

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails during lazy init.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Waits for active queries to complete before closing connections. After
    calling close_db(), the pool is reset to None so a later get_db_pool()
    creates a fresh one. Calling it when no pool exists has no effect.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None

