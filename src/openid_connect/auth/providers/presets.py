"""Well-known endpoint presets per provider family.

Values configured explicitly for a provider always take precedence.
"""

from __future__ import annotations

from typing import Any


GOOGLE_ISSUER = "https://accounts.google.com"

FAMILY_PRESETS: dict[str, dict[str, Any]] = {
    "generic": {},
    "google": {
        "label": "Google",
        "authorization_endpoint": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_endpoint": "https://oauth2.googleapis.com/token",
        "userinfo_endpoint": "https://openidconnect.googleapis.com/v1/userinfo",
        "jwks_uri": "https://www.googleapis.com/oauth2/v3/certs",
        "issuer": GOOGLE_ISSUER,
    },
    # GitHub is OAuth2 only: no ID token, identity comes from the REST API
    "github": {
        "label": "GitHub",
        "authorization_endpoint": "https://github.com/login/oauth/authorize",
        "token_endpoint": "https://github.com/login/oauth/access_token",
        "userinfo_endpoint": "https://api.github.com/user",
        "issuer": "https://github.com",
        "scopes": ["read:user", "user:email"],
        "use_pkce": False,
    },
}


def preset_for(family: str) -> dict[str, Any]:
    """Return a copy of the preset values for ``family`` (empty if unknown)."""
    return dict(FAMILY_PRESETS.get(family, {}))
