"""PostgreSQL database layer.

This module provides:
- Connection pool management
- Repository classes for users and identity links
- Health check utilities
"""

from openid_connect.database.connection import (
    check_database_health,
    close_database_pool,
    ensure_schema,
    get_database_pool,
    init_database_pool,
)
from openid_connect.database.repositories import PostgresUserLinkRepository, PostgresUserStore


__all__ = [
    "PostgresUserLinkRepository",
    "PostgresUserStore",
    "check_database_health",
    "close_database_pool",
    "ensure_schema",
    "get_database_pool",
    "init_database_pool",
]
