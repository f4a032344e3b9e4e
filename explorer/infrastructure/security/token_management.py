"""Azure AD token acquisition backed by the distributed token cache.

Wraps msal.ConfidentialClientApplication. MSAL calls are blocking HTTP, so
they run in a worker thread; the token cache hooks run on the event loop
around them. When the distributed cache is disabled MSAL uses its own
in-memory cache for the lifetime of the client only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from msal import ConfidentialClientApplication, SerializableTokenCache

from explorer.core.config import Settings
from explorer.core.constants import AAD_INVALID_GRANT_CODE
from explorer.domain.exceptions import InvalidArgumentException, TokenAcquisitionException
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.infrastructure.cache.keys import (
    app_only_token_cache_key,
    partner_center_app_only_key,
    partner_center_user_key,
)
from explorer.infrastructure.cache.redis_cache import CacheService
from explorer.infrastructure.cache.token_cache import DistributedTokenCache
from explorer.schemas.token import AuthenticationToken, PartnerCenterToken
from explorer.shared.telemetry.events import TelemetryProvider
from explorer.shared.telemetry.tracing import traced
from explorer.shared.utils.datetime import expires_after, remaining_lifetime

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, SerializableTokenCache | None], ConfidentialClientApplication]
PartnerCenterAcquirer = Callable[[], Awaitable[PartnerCenterToken]]

_STALE_GRANT_ERROR_CODE = int(AAD_INVALID_GRANT_CODE.removeprefix("AADSTS"))


def scopes_for(resource: str) -> list[str]:
    """Return the v2 '.default' scope list for a v1-style resource URI."""
    return [f"{resource.rstrip('/')}/.default"]


def _is_stale_grant(result: dict[str, Any]) -> bool:
    if _STALE_GRANT_ERROR_CODE in (result.get("error_codes") or []):
        return True
    return AAD_INVALID_GRANT_CODE in (result.get("error_description") or "")


class TokenManagement:
    """Acquires app-only and app+user tokens and memoizes Partner Center credentials."""

    def __init__(
        self,
        settings: Settings,
        cache: CacheService,
        client_factory: ClientFactory | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        """Initialize token management.

        Args:
            settings: Supplies application_id/secret and the AD endpoint.
            cache: Distributed cache for token blobs and Partner Center credentials.
            client_factory: Optional (authority, token_cache) -> ConfidentialClientApplication, for testing.
            telemetry: Optional sink for acquisition events.
        """
        self.settings = settings
        self.cache = cache
        self._client_factory = client_factory or self._default_client_factory
        self.telemetry = telemetry

    @property
    def default_authority(self) -> str:
        """Authority URL for the application's own tenant."""
        return f"{self.settings.active_directory_endpoint.rstrip('/')}/{self.settings.application_tenant_id}"

    def _default_client_factory(
        self, authority: str, token_cache: SerializableTokenCache | None
    ) -> ConfidentialClientApplication:
        return ConfidentialClientApplication(
            self.settings.application_id,
            authority=authority,
            client_credential=self.settings.application_secret.get_secret_value(),
            token_cache=token_cache,
        )

    def _token_cache(
        self, resource: str, *, object_id: str | None = None, key: str | None = None
    ) -> DistributedTokenCache | None:
        if not self.cache.is_enabled:
            return None
        return DistributedTokenCache(self.cache, resource, object_id=object_id, key=key)

    async def _acquire(
        self,
        token_cache: DistributedTokenCache | None,
        acquire: Callable[[], dict[str, Any]],
    ) -> dict[str, Any]:
        """Run one MSAL call between the token cache hooks."""
        if token_cache is not None:
            await token_cache.aon_before_access()
        result = await asyncio.to_thread(acquire)
        if token_cache is not None:
            await token_cache.aon_after_access()
        return result

    def _to_token(self, resource: str, result: dict[str, Any]) -> AuthenticationToken:
        if "access_token" not in result:
            error = TokenAcquisitionException(
                resource, result.get("error"), result.get("error_description")
            )
            if self.telemetry is not None:
                self.telemetry.track_exception(error, {"resource": resource})
            raise error
        if self.telemetry is not None:
            self.telemetry.track_event(
                "TokenAcquired",
                {"resource": resource, "source": result.get("token_source", "unknown")},
            )
        return AuthenticationToken(
            access_token=result["access_token"],
            expires_at=expires_after(float(result.get("expires_in", 0))),
        )

    @traced("token.app_only", record=("authority", "resource"))
    async def get_app_only_token(self, authority: str, resource: str) -> AuthenticationToken:
        """Acquire an app-only (client credentials) token for resource.

        Raises:
            InvalidArgumentException: Empty authority or resource.
            TokenAcquisitionException: AAD returned an error.
        """
        if not authority:
            raise InvalidArgumentException("authority")
        if not resource:
            raise InvalidArgumentException("resource")
        token_cache = self._token_cache(
            resource, key=app_only_token_cache_key(authority, resource)
        )
        client = self._client_factory(authority, token_cache)
        result = await self._acquire(
            token_cache,
            lambda: client.acquire_token_for_client(scopes=scopes_for(resource)),
        )
        logger.info("App-only token acquired for %s", resource)
        return self._to_token(resource, result)

    @traced("token.app_plus_user", record=("authority", "resource"))
    async def get_app_plus_user_token(
        self,
        authority: str,
        resource: str,
        object_id: str,
        user_assertion: str,
    ) -> AuthenticationToken:
        """Acquire an on-behalf-of token for the signed-in principal.

        A stale grant (AADSTS70002) flushes the token cache and retries once.

        Args:
            authority: Authority URL.
            resource: Resource (audience) the token is for.
            object_id: Directory object ID of the signed-in principal (cache key).
            user_assertion: The user's incoming access token.
        """
        if not authority:
            raise InvalidArgumentException("authority")
        if not resource:
            raise InvalidArgumentException("resource")
        if not user_assertion:
            raise InvalidArgumentException("user_assertion")
        token_cache = self._token_cache(resource, object_id=object_id)
        client = self._client_factory(authority, token_cache)

        def acquire() -> dict[str, Any]:
            return client.acquire_token_on_behalf_of(user_assertion, scopes_for(resource))

        result = await self._acquire(token_cache, acquire)
        if "access_token" not in result and _is_stale_grant(result):
            logger.warning("Stale grant for %s; clearing token cache and retrying", resource)
            if token_cache is not None:
                await token_cache.aclear()
            result = await self._acquire(token_cache, acquire)
        return self._to_token(resource, result)

    async def _partner_center_credentials(
        self, key: str, acquire: PartnerCenterAcquirer
    ) -> PartnerCenterToken:
        credentials = await self.cache.afetch(
            CacheDatabaseType.AUTHENTICATION, key, PartnerCenterToken
        )
        if credentials is not None and not credentials.is_expired():
            return credentials
        credentials = await acquire()
        lifetime = remaining_lifetime(credentials.expires_at)
        if lifetime.total_seconds() > 0:
            await self.cache.astore(CacheDatabaseType.AUTHENTICATION, key, credentials, lifetime)
        return credentials

    async def get_partner_center_app_only_credentials(
        self, acquire: PartnerCenterAcquirer
    ) -> PartnerCenterToken:
        """Return cached app-only Partner Center credentials, acquiring them when missing or expired."""
        return await self._partner_center_credentials(partner_center_app_only_key(), acquire)

    async def get_partner_center_app_plus_user_credentials(
        self, object_id: str, acquire: PartnerCenterAcquirer
    ) -> PartnerCenterToken:
        """Return cached app+user Partner Center credentials for object_id."""
        return await self._partner_center_credentials(
            partner_center_user_key(object_id), acquire
        )
