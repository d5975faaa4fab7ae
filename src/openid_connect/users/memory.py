"""In-process user store and link repository."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from openid_connect.observability.logging import get_logger


if TYPE_CHECKING:
    from openid_connect.auth.session import SessionManager
    from openid_connect.users.protocol import UserLink

logger = get_logger(__name__)


class InMemoryUserLinkRepository:
    """Dict-backed link repository.

    ``create`` does not await between the existence check and the insert, so
    it is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._links: dict[tuple[str, str], UserLink] = {}

    async def get(self, provider_id: str, subject: str) -> UserLink | None:
        return self._links.get((provider_id, subject))

    async def create(self, link: UserLink) -> UserLink:
        return self._links.setdefault((link.provider_id, link.subject), link)

    def __len__(self) -> int:
        return len(self._links)


class InMemoryUserStore:
    """Dict-backed user store issuing signed session tokens."""

    def __init__(self, sessions: SessionManager) -> None:
        self.sessions = sessions
        self._users: dict[str, dict[str, Any]] = {}

    async def create_user(self, attributes: dict[str, Any]) -> str:
        local_user_id = str(uuid.uuid4())
        self._users[local_user_id] = dict(attributes)
        logger.info("Local user created", local_user_id=local_user_id)
        return local_user_id

    async def update_user(self, local_user_id: str, attributes: dict[str, Any]) -> None:
        user = self._users.get(local_user_id)
        if user is None:
            msg = f"Unknown local user: {local_user_id}"
            raise KeyError(msg)
        user.update(attributes)

    async def delete_user(self, local_user_id: str) -> None:
        self._users.pop(local_user_id, None)

    async def get_user(self, local_user_id: str) -> dict[str, Any] | None:
        user = self._users.get(local_user_id)
        return dict(user) if user is not None else None

    async def establish_session(self, local_user_id: str) -> str:
        return self.sessions.issue(local_user_id)

    def __len__(self) -> int:
        return len(self._users)
