"""Cache key builders for token cache blobs and Partner Center credentials.

Key components must not contain CACHE_KEY_SEP, otherwise two different
(resource, principal) pairs could collide on the same key.
"""

from explorer.core.constants import (
    CACHE_KEY_APP_ONLY,
    CACHE_KEY_IDENTIFIER,
    CACHE_KEY_PARTNER_CENTER,
    CACHE_KEY_RESOURCE,
    CACHE_KEY_SEP,
)
from explorer.domain.exceptions import InvalidArgumentException


def _validate_key_component(value: str, name: str) -> None:
    """Raise InvalidArgumentException if value is empty or contains the separator."""
    if not value:
        raise InvalidArgumentException(name)
    if CACHE_KEY_SEP in value:
        raise InvalidArgumentException(
            name,
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}",
        )


def token_cache_key(resource: str, object_id: str) -> str:
    """Token cache key for a signed-in principal (directory object ID) and resource."""
    _validate_key_component(resource, "resource")
    _validate_key_component(object_id, "object_id")
    return CACHE_KEY_SEP.join(
        (CACHE_KEY_RESOURCE, resource, CACHE_KEY_IDENTIFIER, object_id)
    )


def app_only_token_cache_key(authority: str, resource: str) -> str:
    """Token cache key for app-only (client credentials) tokens.

    Authorities and resources are URLs, so only emptiness is checked here.
    """
    if not authority:
        raise InvalidArgumentException("authority")
    if not resource:
        raise InvalidArgumentException("resource")
    return CACHE_KEY_SEP.join((CACHE_KEY_APP_ONLY, authority, resource))


def partner_center_app_only_key() -> str:
    """Cache key for the app-only Partner Center credentials."""
    return CACHE_KEY_SEP.join(
        (CACHE_KEY_RESOURCE, CACHE_KEY_PARTNER_CENTER, CACHE_KEY_APP_ONLY)
    )


def partner_center_user_key(object_id: str) -> str:
    """Cache key for app+user Partner Center credentials of one principal."""
    _validate_key_component(object_id, "object_id")
    return CACHE_KEY_SEP.join((CACHE_KEY_RESOURCE, CACHE_KEY_PARTNER_CENTER, object_id))
