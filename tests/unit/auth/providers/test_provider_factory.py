"""Unit tests for the provider family factory."""

from __future__ import annotations

import pytest

from openid_connect.auth.providers import (
    PROVIDER_FAMILIES,
    ConfigurationError,
    GitHubProvider,
    GoogleProvider,
    ProviderClient,
    ProviderClients,
    StandardOIDCProvider,
    create_provider_client,
)
from tests.factories.providers import ProviderConfigFactory


pytestmark = pytest.mark.unit


class TestCreateProviderClient:
    """Tests for create_provider_client."""

    @pytest.mark.parametrize(
        ("family", "expected"),
        [
            ("generic", StandardOIDCProvider),
            ("google", GoogleProvider),
            ("github", GitHubProvider),
        ],
    )
    def test_creates_family_client(self, token_client, family, expected) -> None:
        client = create_provider_client(family, token_client)

        assert type(client) is expected
        assert client.family == family
        assert isinstance(client, ProviderClient)

    def test_unknown_family(self, token_client) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider family"):
            create_provider_client("facebook", token_client)

    def test_registered_families(self) -> None:
        assert set(PROVIDER_FAMILIES) == {"generic", "google", "github"}


class TestProviderClients:
    """Tests for the per-family client cache."""

    def test_reuses_client_per_family(self, token_client) -> None:
        clients = ProviderClients(token_client)

        first = clients.for_provider(ProviderConfigFactory.build(id="a"))
        second = clients.for_provider(ProviderConfigFactory.build(id="b"))

        assert first is second

    def test_distinct_clients_per_family(self, token_client) -> None:
        clients = ProviderClients(token_client)

        google = clients.for_provider(ProviderConfigFactory.build())
        github = clients.for_provider(ProviderConfigFactory.github())

        assert isinstance(google, GoogleProvider)
        assert isinstance(github, GitHubProvider)

    def test_unknown_family_on_lookup(self, token_client) -> None:
        clients = ProviderClients(token_client)

        with pytest.raises(ConfigurationError):
            clients.for_provider(ProviderConfigFactory.build(family="unknown"))
