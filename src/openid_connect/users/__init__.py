"""Local users and external identity links."""

from openid_connect.users.memory import InMemoryUserLinkRepository, InMemoryUserStore
from openid_connect.users.protocol import UserLink, UserLinkRepository, UserStore


__all__ = [
    "InMemoryUserLinkRepository",
    "InMemoryUserStore",
    "UserLink",
    "UserLinkRepository",
    "UserStore",
]
