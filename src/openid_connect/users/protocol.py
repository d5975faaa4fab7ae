"""Local user and identity link interfaces.

The login core only ever talks to users through these protocols. Memory
implementations live in :mod:`openid_connect.users.memory`, PostgreSQL ones
in :mod:`openid_connect.database.repositories`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel


class UserLink(BaseModel):
    """Binding of an external identity to one local account.

    ``(provider_id, subject)`` is unique across all links.
    """

    local_user_id: str
    provider_id: str
    subject: str
    created_at: datetime

    model_config = {"frozen": True}


@runtime_checkable
class UserLinkRepository(Protocol):
    """Storage for :class:`UserLink` with a uniqueness guarantee."""

    async def get(self, provider_id: str, subject: str) -> UserLink | None:
        """Return the link for the external identity, if any."""
        ...

    async def create(self, link: UserLink) -> UserLink:
        """Insert ``link`` unless the identity is already linked.

        Returns:
            The stored link. When another link for the same identity already
            exists it is returned unchanged and ``link`` is discarded.
        """
        ...


@runtime_checkable
class UserStore(Protocol):
    """Local user accounts and sessions."""

    async def create_user(self, attributes: dict[str, Any]) -> str:
        """Create a user seeded with ``attributes`` and return its id."""
        ...

    async def update_user(self, local_user_id: str, attributes: dict[str, Any]) -> None:
        """Overwrite the given attributes of an existing user."""
        ...

    async def delete_user(self, local_user_id: str) -> None:
        """Delete a user. Missing users are ignored."""
        ...

    async def get_user(self, local_user_id: str) -> dict[str, Any] | None:
        """Return the attributes of a user, or None if it does not exist."""
        ...

    async def establish_session(self, local_user_id: str) -> str:
        """Start a session for the user and return the session token."""
        ...
