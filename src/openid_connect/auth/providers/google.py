"""Google provider family."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openid_connect.auth.providers.generic import StandardOIDCProvider
from openid_connect.auth.providers.presets import GOOGLE_ISSUER


if TYPE_CHECKING:
    from openid_connect.auth.providers.models import ProviderConfig


class GoogleProvider(StandardOIDCProvider):
    """Google accounts.

    Google ID tokens carry ``iss`` either with or without the scheme, both
    forms are accepted.
    """

    @property
    def family(self) -> str:
        return "google"

    def accepted_issuers(self, provider: ProviderConfig) -> set[str]:
        issuers = super().accepted_issuers(provider)
        issuers.update({GOOGLE_ISSUER, GOOGLE_ISSUER.removeprefix("https://")})
        return issuers
