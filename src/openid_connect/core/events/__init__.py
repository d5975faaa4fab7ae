"""Application lifecycle events."""

from openid_connect.core.events.lifespan import lifespan


__all__ = ["lifespan"]
