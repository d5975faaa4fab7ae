"""Bind external identities to local accounts.

At most one local user is ever created per ``(provider_id, subject)``. In a
single process a per-identity lock serializes first logins; across workers
the link repository's uniqueness constraint decides the winner, and a
loser deletes the user it created and adopts the winner's account.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from openid_connect.observability.logging import get_logger
from openid_connect.users.protocol import UserLink


if TYPE_CHECKING:
    from collections.abc import Callable

    from openid_connect.users.protocol import UserLinkRepository, UserStore

logger = get_logger(__name__)


class SessionBinder:
    """Resolves an external identity to a local user id.

    Attributes:
        links: Identity link repository.
        users: Local user store.
        always_save_userinfo: Refresh attributes on every login, not only
            when the user is created.
    """

    def __init__(
        self,
        links: UserLinkRepository,
        users: UserStore,
        *,
        always_save_userinfo: bool = True,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.links = links
        self.users = users
        self.always_save_userinfo = always_save_userinfo
        self._clock = clock
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Counter[tuple[str, str]] = Counter()

    async def bind(self, provider_id: str, subject: str, attributes: dict[str, Any]) -> str:
        """Return the local user id for the identity, creating it if needed."""
        key = (provider_id, subject)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                return await self._bind(provider_id, subject, attributes)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _bind(self, provider_id: str, subject: str, attributes: dict[str, Any]) -> str:
        existing = await self.links.get(provider_id, subject)
        if existing is not None:
            if self.always_save_userinfo and attributes:
                await self.users.update_user(existing.local_user_id, attributes)
                logger.debug("User attributes refreshed", local_user_id=existing.local_user_id)
            return existing.local_user_id

        local_user_id = await self.users.create_user(attributes)
        try:
            stored = await self.links.create(
                UserLink(
                    local_user_id=local_user_id,
                    provider_id=provider_id,
                    subject=subject,
                    created_at=self._clock(),
                )
            )
        except Exception:
            # A user without a link could never log in again
            logger.warning(
                "Linking failed, removing new user",
                provider_id=provider_id,
                local_user_id=local_user_id,
            )
            await self.users.delete_user(local_user_id)
            raise

        if stored.local_user_id != local_user_id:
            # Another worker linked the identity first
            logger.warning(
                "Identity linked concurrently, discarding duplicate user",
                provider_id=provider_id,
                local_user_id=local_user_id,
                winner_user_id=stored.local_user_id,
            )
            await self.users.delete_user(local_user_id)
            return stored.local_user_id

        logger.info("Identity linked to new user", provider_id=provider_id, local_user_id=local_user_id)
        return local_user_id
