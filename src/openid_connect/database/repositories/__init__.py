"""PostgreSQL repositories for users and identity links."""

from openid_connect.database.repositories.user_links import PostgresUserLinkRepository
from openid_connect.database.repositories.users import PostgresUserStore


__all__ = ["PostgresUserLinkRepository", "PostgresUserStore"]
