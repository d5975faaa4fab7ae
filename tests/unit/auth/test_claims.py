"""Unit tests for the claims mapper."""

from __future__ import annotations

import pytest

from openid_connect.auth.claims import ClaimsMapper, resolve_claim
from openid_connect.core.config import OpenIDConnectSettings
from tests.factories.providers import VerifiedClaimsFactory


pytestmark = pytest.mark.unit


class TestResolveClaim:
    """Tests for claim lookup."""

    def test_top_level_claim(self) -> None:
        assert resolve_claim({"email": "a@b.com"}, "email") == "a@b.com"

    def test_dotted_path(self) -> None:
        claims = {"address": {"locality": "Paris"}}

        assert resolve_claim(claims, "address.locality") == "Paris"

    def test_exact_name_wins_over_path(self) -> None:
        claims = {"address.locality": "Lyon", "address": {"locality": "Paris"}}

        assert resolve_claim(claims, "address.locality") == "Lyon"


class TestClaimsMapper:
    """Tests for ClaimsMapper.map."""

    def test_maps_verified_claims(self) -> None:
        """The google/u1 claims should map email to the email attribute."""
        claims = VerifiedClaimsFactory.build(claims={"sub": "u1", "email": "a@b.com"})

        attributes = ClaimsMapper().map(claims, {"email": "email"})

        assert attributes == {"email": "a@b.com"}

    def test_missing_claims_produce_no_attribute(self) -> None:
        attributes = ClaimsMapper().map(
            {"sub": "u1", "email": "a@b.com"},
            {"email": "email", "display_name": "name", "city": "address.locality"},
        )

        assert attributes == {"email": "a@b.com"}

    @pytest.mark.parametrize("empty", [None, "", [], {}])
    def test_empty_claims_produce_no_attribute(self, empty) -> None:
        attributes = ClaimsMapper().map({"name": empty}, {"display_name": "name"})

        assert attributes == {}

    def test_one_claim_to_several_attributes(self) -> None:
        attributes = ClaimsMapper().map(
            {"email": "a@b.com"}, {"email": "email", "contact": "email"}
        )

        assert attributes == {"email": "a@b.com", "contact": "a@b.com"}

    def test_deterministic(self) -> None:
        """Mapping the same input twice should give equal results."""
        mapper = ClaimsMapper(user_pictures=True)
        claims = {"sub": "u1", "email": "a@b.com", "picture": "https://img/1", "name": "Ada"}
        table = {"email": "email", "display_name": "name"}

        assert mapper.map(claims, table) == mapper.map(claims, table)

    def test_default_mapping_includes_timezone(self) -> None:
        """The shipped mapping should store the zoneinfo claim as the timezone."""
        claims = VerifiedClaimsFactory.build(
            claims={"sub": "u1", "email": "a@b.com", "zoneinfo": "Europe/Paris"}
        )

        attributes = ClaimsMapper().map(claims, OpenIDConnectSettings().userinfo_mapping)

        assert attributes == {"email": "a@b.com", "timezone": "Europe/Paris"}

    def test_picture_copied_when_enabled(self) -> None:
        attributes = ClaimsMapper(user_pictures=True).map(
            {"picture": "https://img/1"}, {"email": "email"}
        )

        assert attributes == {"picture": "https://img/1"}

    def test_picture_ignored_by_default(self) -> None:
        attributes = ClaimsMapper().map({"picture": "https://img/1"}, {"email": "email"})

        assert attributes == {}

    def test_does_not_mutate_input(self) -> None:
        claims = {"email": "a@b.com"}

        ClaimsMapper().map(claims, {"email": "email"})["email"] = "changed"

        assert claims == {"email": "a@b.com"}
