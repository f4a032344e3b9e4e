"""MSAL token cache persisted in the distributed cache.

DistributedTokenCache keeps one msal.SerializableTokenCache in sync with a
single blob in the AUTHENTICATION namespace. Token acquisition code calls
on_before_access() before handing the cache to MSAL and on_after_access()
afterwards (or the a-prefixed coroutines from async code):

    token_cache = DistributedTokenCache(cache, resource, object_id=oid)
    await token_cache.aon_before_access()
    result = app.acquire_token_on_behalf_of(assertion, scopes)
    await token_cache.aon_after_access()

Cache errors are not caught here: a token that failed to persist must fail
the request rather than silently living only in memory.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from msal import SerializableTokenCache

from explorer.domain.exceptions import InvalidArgumentException
from explorer.infrastructure.cache.cache_protocol import CacheProtocol
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.infrastructure.cache.keys import token_cache_key
from explorer.shared.telemetry.logging import key_digest

logger = logging.getLogger(__name__)

EMPTY_STATE = "{}"


class TokenCacheState(str, Enum):
    """Sync state of the in-memory token cache relative to the distributed blob."""

    EMPTY = "empty"
    LOADED = "loaded"
    DIRTY = "dirty"


class DistributedTokenCache(SerializableTokenCache):
    """Token cache for one resource and principal (or one app-only context).

    Two instances built for the same resource and object_id share a key and
    therefore share tokens; an explicit key isolates an instance.
    """

    def __init__(
        self,
        cache: CacheProtocol,
        resource: str,
        object_id: str | None = None,
        key: str | None = None,
    ) -> None:
        """Initialize the token cache.

        Args:
            cache: Distributed cache that stores the serialized blob.
            resource: Resource (audience) the cached tokens are for.
            object_id: Directory object ID of the signed-in principal; used
                to derive the key when no explicit key is given.
            key: Explicit cache key (e.g. for app-only tokens).

        Raises:
            InvalidArgumentException: Empty resource, or neither key nor object_id given.
        """
        super().__init__()
        if cache is None:
            raise InvalidArgumentException("cache", "Argument 'cache' must not be None")
        if not resource:
            raise InvalidArgumentException("resource")
        if not key and not object_id:
            raise InvalidArgumentException(
                "object_id", "Either key or object_id is required to derive the cache key"
            )
        self.cache = cache
        self.resource = resource
        self.object_id = object_id
        self._key = key or token_cache_key(resource, object_id or "")

    @property
    def key(self) -> str:
        """Key of this cache's blob in the AUTHENTICATION namespace."""
        return self._key

    def entry_count(self) -> int:
        """Number of cached credential entries (tokens, accounts, metadata)."""
        with self._lock:
            return sum(len(v) for v in self._cache.values() if isinstance(v, dict))

    def _snapshot(self) -> str:
        # serialize() would reset has_state_changed before the blob is persisted
        with self._lock:
            return json.dumps(self._cache)

    @property
    def state(self) -> TokenCacheState:
        if self.has_state_changed:
            return TokenCacheState.DIRTY
        if self.entry_count() > 0:
            return TokenCacheState.LOADED
        return TokenCacheState.EMPTY

    def _load(self, blob: str | None) -> None:
        if not blob:
            logger.debug("Token cache miss: %s", key_digest(self.key))
            return
        self.deserialize(blob)
        logger.debug(
            "Token cache loaded: %s (%s entries)", key_digest(self.key), self.entry_count()
        )

    def on_before_access(self) -> None:
        """Load the persisted blob into memory when nothing is loaded yet."""
        if self.state is not TokenCacheState.EMPTY:
            return
        self._load(self.cache.fetch(CacheDatabaseType.AUTHENTICATION, self.key, str))

    async def aon_before_access(self) -> None:
        """Async on_before_access."""
        if self.state is not TokenCacheState.EMPTY:
            return
        self._load(await self.cache.afetch(CacheDatabaseType.AUTHENTICATION, self.key, str))

    def on_after_access(self) -> None:
        """Persist changes made by MSAL: store when non-empty, delete when empty.

        The cache stays DIRTY when the write fails, so the next call retries it.
        """
        if not self.has_state_changed:
            return
        if self.entry_count() > 0:
            self.cache.store(CacheDatabaseType.AUTHENTICATION, self.key, self._snapshot())
        else:
            self.cache.delete(CacheDatabaseType.AUTHENTICATION, self.key)
        self.has_state_changed = False

    async def aon_after_access(self) -> None:
        """Async on_after_access."""
        if not self.has_state_changed:
            return
        if self.entry_count() > 0:
            await self.cache.astore(
                CacheDatabaseType.AUTHENTICATION, self.key, self._snapshot()
            )
        else:
            await self.cache.adelete(CacheDatabaseType.AUTHENTICATION, self.key)
        self.has_state_changed = False

    def clear(self) -> None:
        """Empty the in-memory cache and flush the whole AUTHENTICATION namespace.

        MSAL has no notion of "this principal's entries only", so every
        principal's tokens are dropped and must be re-acquired.
        """
        self.deserialize(EMPTY_STATE)
        self.cache.clear(CacheDatabaseType.AUTHENTICATION)

    async def aclear(self) -> None:
        """Async clear."""
        self.deserialize(EMPTY_STATE)
        await self.cache.aclear(CacheDatabaseType.AUTHENTICATION)

    def delete_item(self, credential_type: str, entry: dict[str, Any]) -> None:
        """Remove one credential entry and drop this cache's persisted blob.

        The cache stays dirty, so the next on_after_access writes back
        whatever entries remain.
        """
        self.modify(credential_type, entry)
        self.cache.delete(CacheDatabaseType.AUTHENTICATION, self.key)

    async def adelete_item(self, credential_type: str, entry: dict[str, Any]) -> None:
        """Async delete_item."""
        self.modify(credential_type, entry)
        await self.cache.adelete(CacheDatabaseType.AUTHENTICATION, self.key)
