"""Cache: Redis connection, cache service, and MSAL token cache.

CacheService is the only entry point for reading and writing cached data;
DistributedTokenCache builds on it to persist MSAL token caches.
"""

from explorer.infrastructure.cache.cache_protocol import CacheProtocol
from explorer.infrastructure.cache.connection import CacheConnection
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.infrastructure.cache.keys import (
    app_only_token_cache_key,
    partner_center_app_only_key,
    partner_center_user_key,
    token_cache_key,
)
from explorer.infrastructure.cache.redis_cache import CacheService, cached
from explorer.infrastructure.cache.serialization import CacheSerializer
from explorer.infrastructure.cache.token_cache import DistributedTokenCache, TokenCacheState

__all__ = [
    "CacheConnection",
    "CacheDatabaseType",
    "CacheProtocol",
    "CacheSerializer",
    "CacheService",
    "DistributedTokenCache",
    "TokenCacheState",
    "app_only_token_cache_key",
    "cached",
    "partner_center_app_only_key",
    "partner_center_user_key",
    "token_cache_key",
]
