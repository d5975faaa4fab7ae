"""Unit tests for the standard and Google provider families.

Tests cover:
- Authorization URL construction
- Accepted issuers
- Userinfo merging into verified claims
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
import respx

from openid_connect.auth.providers.exceptions import ClaimMismatchError
from openid_connect.auth.providers.generic import StandardOIDCProvider
from openid_connect.auth.providers.google import GoogleProvider
from openid_connect.auth.providers.models import TokenSet
from tests.factories.providers import (
    GOOGLE_JWKS_URI,
    AuthAttemptFactory,
    ProviderConfigFactory,
    VerifiedClaimsFactory,
)


pytestmark = pytest.mark.unit

USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class TestStandardAuthorizationUrl:
    """Tests for building the authorization redirect."""

    def test_includes_pkce_challenge(self, token_client) -> None:
        family = StandardOIDCProvider(token_client)
        provider = ProviderConfigFactory.build(family="generic")

        url = family.build_authorization_url(provider, AuthAttemptFactory.build(), "challenge")

        params = parse_qs(urlsplit(url).query)
        assert params["code_challenge"] == ["challenge"]
        assert params["code_challenge_method"] == ["S256"]
        assert params["state"] == ["state-123"]
        assert params["nonce"] == ["nonce-123"]

    def test_no_challenge_without_pkce(self, token_client) -> None:
        family = StandardOIDCProvider(token_client)

        url = family.build_authorization_url(
            ProviderConfigFactory.build(), AuthAttemptFactory.build(), None
        )

        assert "code_challenge" not in parse_qs(urlsplit(url).query)

    def test_endpoint_with_existing_query(self, token_client) -> None:
        """Should append parameters to an endpoint that already has a query."""
        family = StandardOIDCProvider(token_client)
        provider = ProviderConfigFactory.build(
            authorization_endpoint="https://idp.example.com/auth?tenant=acme"
        )

        url = family.build_authorization_url(provider, AuthAttemptFactory.build(), None)

        assert url.startswith("https://idp.example.com/auth?tenant=acme&client_id=")


class TestAcceptedIssuers:
    """Tests for issuer acceptance per family."""

    def test_standard_uses_configured_issuer(self, token_client) -> None:
        provider = ProviderConfigFactory.build(issuer="https://idp.example.com")

        assert StandardOIDCProvider(token_client).accepted_issuers(provider) == {
            "https://idp.example.com"
        }

    def test_google_accepts_both_issuer_forms(self, token_client) -> None:
        provider = ProviderConfigFactory.build(issuer=None)

        assert GoogleProvider(token_client).accepted_issuers(provider) == {
            "https://accounts.google.com",
            "accounts.google.com",
        }


class TestMergeUserinfo:
    """Tests for combining userinfo with ID token claims."""

    def test_adds_userinfo_claims(self) -> None:
        verified = VerifiedClaimsFactory.build()

        merged = StandardOIDCProvider.merge_userinfo(
            verified, {"sub": "u1", "name": "Ada", "picture": "https://img/1"}
        )

        assert merged.claims["name"] == "Ada"
        assert merged.claims["email"] == "a@b.com"

    def test_subject_mismatch(self) -> None:
        """Userinfo for another subject should fail the login."""
        with pytest.raises(ClaimMismatchError) as exc_info:
            StandardOIDCProvider.merge_userinfo(VerifiedClaimsFactory.build(), {"sub": "u2"})

        assert exc_info.value.check == "sub"

    def test_protected_claims_not_overridden(self) -> None:
        verified = VerifiedClaimsFactory.build(
            claims={"sub": "u1", "iss": "https://accounts.google.com"}
        )

        merged = StandardOIDCProvider.merge_userinfo(
            verified, {"sub": "u1", "iss": "https://evil.example.com"}
        )

        assert merged.claims["iss"] == "https://accounts.google.com"

    def test_non_object_userinfo_ignored(self) -> None:
        verified = VerifiedClaimsFactory.build()

        assert StandardOIDCProvider.merge_userinfo(verified, ["unexpected"]) is verified


class TestGoogleVerifyToken:
    """Tests for Google token verification with userinfo."""

    @respx.mock
    async def test_userinfo_merged_after_verification(
        self, token_client, registry, jwks_document, mint_id_token, id_token_claims
    ) -> None:
        respx.get(GOOGLE_JWKS_URI).mock(return_value=httpx.Response(200, json=jwks_document))
        respx.get(USERINFO_URL).mock(
            return_value=httpx.Response(200, json={"sub": "u1", "name": "Ada Lovelace"})
        )
        provider = ProviderConfigFactory.build(userinfo_endpoint=USERINFO_URL)
        registry.replace([provider])
        tokens = TokenSet(access_token="at", id_token=mint_id_token(id_token_claims))

        verified = await GoogleProvider(token_client).verify_token(
            provider, tokens, AuthAttemptFactory.build()
        )

        assert verified.subject == "u1"
        assert verified.claims["name"] == "Ada Lovelace"

    @respx.mock
    async def test_issuer_without_scheme_accepted(
        self, token_client, jwks_document, mint_id_token, id_token_claims
    ) -> None:
        respx.get(GOOGLE_JWKS_URI).mock(return_value=httpx.Response(200, json=jwks_document))
        id_token_claims["iss"] = "accounts.google.com"
        tokens = TokenSet(access_token="at", id_token=mint_id_token(id_token_claims))

        verified = await GoogleProvider(token_client).verify_token(
            ProviderConfigFactory.build(), tokens, AuthAttemptFactory.build()
        )

        assert verified.issuer == "accounts.google.com"
