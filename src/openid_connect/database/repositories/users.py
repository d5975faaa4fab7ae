"""Local user repository.

Users are stored in ``oidc_users`` with their attributes in a JSONB column.
Sessions are stateless signed tokens issued by the session manager.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import orjson

from openid_connect.database.connection import get_database_pool
from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Pool

    from openid_connect.auth.session import SessionManager

logger = get_logger(__name__)


class PostgresUserStore:
    """User store backed by PostgreSQL."""

    def __init__(self, sessions: SessionManager, pool: Pool | None = None) -> None:
        self.sessions = sessions
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get the database connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()

    async def create_user(self, attributes: dict[str, Any]) -> str:
        user_id = uuid.uuid4()
        async with self.pool.acquire() as conn:
            await conn.execute(
                "INSERT INTO oidc_users (user_id, attributes) VALUES ($1, $2::jsonb)",
                user_id,
                orjson.dumps(attributes, default=str).decode(),
            )
        logger.info("Local user created", local_user_id=str(user_id))
        return str(user_id)

    async def update_user(self, local_user_id: str, attributes: dict[str, Any]) -> None:
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                """
                UPDATE oidc_users
                SET attributes = attributes || $2::jsonb, updated_at = now()
                WHERE user_id = $1
                """,
                uuid.UUID(local_user_id),
                orjson.dumps(attributes, default=str).decode(),
            )
        if status == "UPDATE 0":
            msg = f"Unknown local user: {local_user_id}"
            raise KeyError(msg)

    async def delete_user(self, local_user_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "DELETE FROM oidc_users WHERE user_id = $1",
                uuid.UUID(local_user_id),
            )

    async def get_user(self, local_user_id: str) -> dict[str, Any] | None:
        try:
            user_id = uuid.UUID(local_user_id)
        except ValueError:
            return None
        async with self.pool.acquire() as conn:
            raw = await conn.fetchval(
                "SELECT attributes FROM oidc_users WHERE user_id = $1",
                user_id,
            )
        return orjson.loads(raw) if raw is not None else None

    async def establish_session(self, local_user_id: str) -> str:
        return self.sessions.issue(local_user_id)
