"""Tests for cache key builders."""

import pytest

from explorer.domain.exceptions import InvalidArgumentException
from explorer.infrastructure.cache.keys import (
    app_only_token_cache_key,
    partner_center_app_only_key,
    partner_center_user_key,
    token_cache_key,
)

GRAPH = "https://graph.windows.net"
OID = "7f2c1a9e-0000-4b1e-9a33-12ab34cd56ef"


def test_token_cache_key_format() -> None:
    assert token_cache_key(GRAPH, OID) == f"Resource::{GRAPH}::Identifier::{OID}"


def test_token_cache_key_is_deterministic() -> None:
    assert token_cache_key(GRAPH, OID) == token_cache_key(GRAPH, OID)


def test_token_cache_key_distinguishes_principals_and_resources() -> None:
    keys = {
        token_cache_key(GRAPH, OID),
        token_cache_key(GRAPH, "another-object-id"),
        token_cache_key("https://api.partnercenter.microsoft.com", OID),
    }
    assert len(keys) == 3


@pytest.mark.parametrize(
    ("resource", "object_id", "argument"),
    [
        ("", OID, "resource"),
        (GRAPH, "", "object_id"),
        ("a::b", OID, "resource"),
        (GRAPH, "x::Identifier::y", "object_id"),
    ],
)
def test_token_cache_key_rejects_bad_components(
    resource: str, object_id: str, argument: str
) -> None:
    with pytest.raises(InvalidArgumentException) as exc_info:
        token_cache_key(resource, object_id)
    assert exc_info.value.details == {"argument": argument}


def test_app_only_token_cache_key() -> None:
    authority = "https://login.microsoftonline.com/contoso.onmicrosoft.com"
    assert app_only_token_cache_key(authority, GRAPH) == f"AppOnly::{authority}::{GRAPH}"


@pytest.mark.parametrize(("authority", "resource"), [("", GRAPH), ("https://login", "")])
def test_app_only_token_cache_key_rejects_empty(authority: str, resource: str) -> None:
    with pytest.raises(InvalidArgumentException):
        app_only_token_cache_key(authority, resource)


def test_partner_center_keys() -> None:
    assert partner_center_app_only_key() == "Resource::PartnerCenter::AppOnly"
    assert partner_center_user_key(OID) == f"Resource::PartnerCenter::{OID}"


def test_partner_center_user_key_rejects_empty() -> None:
    with pytest.raises(InvalidArgumentException):
        partner_center_user_key("")
