"""Custom middleware components."""

from openid_connect.core.middleware.logging import LoggingMiddleware
from openid_connect.core.middleware.request_id import RequestIDMiddleware
from openid_connect.core.middleware.security_headers import SecurityHeadersMiddleware


__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
    "SecurityHeadersMiddleware",
]
