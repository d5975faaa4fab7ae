"""OpenID Connect login core.

Usage:
    from openid_connect.auth import LoginService

    url = await login_service.begin("google", destination="/account")
    result = await login_service.complete("google", state, code)
"""

from openid_connect.auth.attempts import AttemptStore, AuthAttempt, InMemoryAttemptStore, RedisAttemptStore
from openid_connect.auth.binder import SessionBinder
from openid_connect.auth.claims import ClaimsMapper
from openid_connect.auth.flow import AuthorizationFlowController, generate_pkce_pair
from openid_connect.auth.registry import ProviderRegistry
from openid_connect.auth.service import LoginResult, LoginService
from openid_connect.auth.session import SessionManager


__all__ = [
    "AttemptStore",
    "AuthAttempt",
    "AuthorizationFlowController",
    "ClaimsMapper",
    "InMemoryAttemptStore",
    "LoginResult",
    "LoginService",
    "ProviderRegistry",
    "RedisAttemptStore",
    "SessionBinder",
    "SessionManager",
    "generate_pkce_pair",
]
