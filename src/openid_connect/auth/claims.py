"""Map verified identity claims onto local user attributes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Mapping

    from openid_connect.auth.providers.models import VerifiedClaims


UserAttributes = dict[str, Any]

_MISSING = object()


def _is_empty(value: Any) -> bool:
    return value is None or value in ("", [], {})


def resolve_claim(claims: Mapping[str, Any], name: str) -> Any:
    """Return the claim ``name``, following dotted paths into objects.

    An exact top-level match wins over a dotted path, so a claim literally
    named ``address.locality`` is found before ``address`` -> ``locality``.
    """
    if name in claims:
        return claims[name]
    value: Any = claims
    for part in name.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


class ClaimsMapper:
    """Copies claims to attributes according to a mapping table.

    Attributes:
        user_pictures: Also copy the ``picture`` claim to the ``picture``
            attribute when the mapping does not set it.
    """

    def __init__(self, *, user_pictures: bool = False) -> None:
        self.user_pictures = user_pictures

    def map(
        self,
        claims: VerifiedClaims | Mapping[str, Any],
        mapping_table: Mapping[str, str],
    ) -> UserAttributes:
        """Build user attributes from ``claims``.

        Args:
            claims: Verified claims, or a plain claims mapping.
            mapping_table: Local attribute name -> claim name, in order.

        Returns:
            Attributes for every mapped claim that is present and non-empty.
            Missing and empty claims never produce an attribute.
        """
        values = claims.claims if hasattr(claims, "claims") else claims
        attributes: UserAttributes = {}
        for attribute, claim_name in mapping_table.items():
            value = resolve_claim(values, claim_name)
            if value is _MISSING or _is_empty(value):
                continue
            attributes[attribute] = value

        if self.user_pictures and "picture" not in attributes:
            picture = values.get("picture")
            if not _is_empty(picture):
                attributes["picture"] = picture
        return attributes
