"""Identity link repository.

Provides data access for the ``oidc_user_links`` table. The unique
``(provider_id, subject)`` constraint is what guarantees one local account
per external identity across all workers.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from openid_connect.database.connection import get_database_pool
from openid_connect.observability.logging import get_logger
from openid_connect.users.protocol import UserLink


if TYPE_CHECKING:
    from asyncpg import Pool, Record

logger = get_logger(__name__)


_SELECT_LINK = """
    SELECT provider_id, subject, user_id, created_at
    FROM oidc_user_links
    WHERE provider_id = $1 AND subject = $2
"""

_INSERT_LINK = """
    INSERT INTO oidc_user_links (provider_id, subject, user_id, created_at)
    VALUES ($1, $2, $3, $4)
    ON CONFLICT (provider_id, subject) DO NOTHING
    RETURNING provider_id, subject, user_id, created_at
"""


class PostgresUserLinkRepository:
    """Repository for identity links stored in PostgreSQL."""

    def __init__(self, pool: Pool | None = None) -> None:
        """Initialize repository with optional connection pool.

        Args:
            pool: asyncpg connection pool. If None, uses global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get the database connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()

    async def get(self, provider_id: str, subject: str) -> UserLink | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(_SELECT_LINK, provider_id, subject)
        return self._row_to_link(row) if row is not None else None

    async def create(self, link: UserLink) -> UserLink:
        """Insert ``link``; on a uniqueness conflict return the existing link."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                _INSERT_LINK,
                link.provider_id,
                link.subject,
                uuid.UUID(link.local_user_id),
                link.created_at,
            )
            if row is None:
                logger.debug(
                    "Identity link already exists",
                    provider_id=link.provider_id,
                )
                row = await conn.fetchrow(_SELECT_LINK, link.provider_id, link.subject)

        if row is None:
            msg = f"Link for provider {link.provider_id} vanished after conflict"
            raise RuntimeError(msg)
        return self._row_to_link(row)

    @staticmethod
    def _row_to_link(row: Record) -> UserLink:
        return UserLink(
            local_user_id=str(row["user_id"]),
            provider_id=row["provider_id"],
            subject=row["subject"],
            created_at=row["created_at"],
        )
