"""PostgreSQL connection pool management.

This module provides:
- Async connection pool management via asyncpg
- Idempotent creation of the user and identity link tables
- Connection lifecycle management via lifespan events
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import asyncpg

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Pool

    from openid_connect.core.config import Settings

logger = get_logger(__name__)

# Global connection pool
_pool: Pool | None = None

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS oidc_users (
        user_id UUID PRIMARY KEY,
        attributes JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS oidc_user_links (
        provider_id TEXT NOT NULL,
        subject TEXT NOT NULL,
        user_id UUID NOT NULL REFERENCES oidc_users (user_id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL,
        CONSTRAINT oidc_user_links_identity_key UNIQUE (provider_id, subject)
    )
    """,
)


async def init_database_pool(settings: Settings) -> Pool:
    """Initialize PostgreSQL connection pool.

    Should be called during application startup (lifespan).
    """
    global _pool  # noqa: PLW0603

    logger.info(
        "Initializing database connection pool",
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
    )

    _pool = await asyncpg.create_pool(
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        user=settings.database.user,
        password=settings.DATABASE_PASSWORD or None,
        min_size=settings.database.min_pool_size,
        max_size=settings.database.max_pool_size,
        command_timeout=settings.database.command_timeout,
        ssl=settings.database.ssl if settings.database.ssl else None,
    )

    try:
        assert _pool is not None
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        logger.info("Database connection established successfully")
    except asyncpg.PostgresError:
        logger.exception("Failed to connect to database")
        raise

    return _pool


async def ensure_schema(pool: Pool) -> None:
    """Create the user and link tables if they do not exist."""
    async with pool.acquire() as conn, conn.transaction():
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
    logger.info("Database schema ensured")


async def close_database_pool() -> None:
    """Close PostgreSQL connection pool.

    Should be called during application shutdown (lifespan).
    """
    global _pool  # noqa: PLW0603

    if _pool is None:
        return

    logger.info("Closing database connection pool")
    await _pool.close()
    _pool = None
    logger.info("Database connection pool closed")


def get_database_pool() -> Pool:
    """Get the database connection pool.

    Raises:
        RuntimeError: If pool is not initialized.
    """
    if _pool is None:
        msg = "Database pool not initialized. Call init_database_pool() first."
        raise RuntimeError(msg)
    return _pool


async def check_database_health() -> dict[str, str]:
    """Check health of database connection.

    Returns:
        Dictionary with the health status, empty if the database is not in use.
    """
    if _pool is None:
        return {}
    try:
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (asyncpg.PostgresError, OSError):
        return {"database": "unhealthy"}
    return {"database": "healthy"}
