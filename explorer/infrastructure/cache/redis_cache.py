"""Redis-based distributed cache service.

Namespaced fetch/store/delete/clear, each in a sync and an async form.
Payloads go through CacheSerializer (JSON, zlib when large, Fernet always).
When no connection string is configured every operation is a no-op, so
callers never branch on enablement themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from functools import wraps
from typing import Any

import redis

from explorer.core.config import Settings
from explorer.domain.exceptions import CacheUnavailableException, InvalidArgumentException
from explorer.infrastructure.cache.cache_protocol import Expiration
from explorer.infrastructure.cache.connection import CacheConnection
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.infrastructure.cache.serialization import CacheSerializer
from explorer.infrastructure.security.data_protector import DataProtector
from explorer.shared.telemetry.events import TelemetryProvider
from explorer.shared.telemetry.logging import key_digest
from explorer.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


def _require_key(key: str) -> None:
    if not key:
        raise InvalidArgumentException("key")


def _to_milliseconds(expiration: Expiration) -> int | None:
    """Convert a timedelta or seconds into a positive PX value, or None for no TTL."""
    if expiration is None:
        return None
    if isinstance(expiration, timedelta):
        millis = int(expiration.total_seconds() * 1000)
    else:
        millis = int(expiration * 1000)
    if millis <= 0:
        raise InvalidArgumentException("expiration", "Cache expiration must be positive")
    return millis


class CacheService:
    """Distributed cache over Redis, one logical database per CacheDatabaseType.

    Transport failures surface as CacheUnavailableException (never swallowed);
    callers that treat the cache as optional catch it themselves.
    """

    def __init__(
        self,
        settings: Settings,
        connection: CacheConnection,
        protector: DataProtector,
        serializer: CacheSerializer | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            settings: Configuration; an empty redis_cache_connection_string disables the cache.
            connection: Shared connection handle (created once per process).
            protector: Encrypts payloads before they are written.
            serializer: Optional serializer override; defaults to CacheSerializer(protector).
            telemetry: Optional sink for tracked exceptions.
        """
        self.settings = settings
        self.connection = connection
        self.serializer = serializer or CacheSerializer(
            protector, settings.cache_compression_threshold_bytes
        )
        self.telemetry = telemetry

    @property
    def is_enabled(self) -> bool:
        """True iff a Redis connection string is configured."""
        return bool(self.settings.redis_cache_connection_string.get_secret_value())

    @contextmanager
    def _reporting(self, operation: str, namespace: CacheDatabaseType) -> Iterator[None]:
        """Translate redis errors to CacheUnavailableException and report every failure."""
        try:
            yield
        except redis.RedisError as e:
            logger.warning("Cache %s failed for %s: %s", operation, namespace.name, e)
            error = CacheUnavailableException(
                f"Cache {operation} failed: {e}", namespace.name
            )
            self._track(error, operation, namespace)
            raise error from e
        except Exception as e:
            self._track(e, operation, namespace)
            raise

    def _track(
        self, error: BaseException, operation: str, namespace: CacheDatabaseType
    ) -> None:
        if self.telemetry is not None:
            self.telemetry.track_exception(
                error, {"operation": operation, "namespace": namespace.name}
            )

    @traced("cache.fetch", record=("namespace",))
    def fetch(
        self, namespace: CacheDatabaseType, key: str, model: Any = None
    ) -> Any:
        """Return cached value or None if missing or cache disabled.

        Args:
            namespace: Cache partition.
            key: Cache key (non-empty).
            model: Optional type to validate the value into (e.g. a pydantic model).

        Returns:
            Cached value or None.
        """
        _require_key(key)
        if not self.is_enabled:
            return None
        with self._reporting("fetch", namespace):
            value = self.connection.get_reference(namespace).get(key)
            if value is None:
                logger.debug("Cache MISS: %s/%s", namespace.name, key_digest(key))
                return None
            logger.debug("Cache HIT: %s/%s", namespace.name, key_digest(key))
            return self.serializer.loads(value, model)

    @traced("cache.fetch", record=("namespace",))
    async def afetch(
        self, namespace: CacheDatabaseType, key: str, model: Any = None
    ) -> Any:
        """Async fetch; see fetch()."""
        _require_key(key)
        if not self.is_enabled:
            return None
        with self._reporting("fetch", namespace):
            client = await self.connection.aget_reference(namespace)
            value = await client.get(key)
            if value is None:
                logger.debug("Cache MISS: %s/%s", namespace.name, key_digest(key))
                return None
            logger.debug("Cache HIT: %s/%s", namespace.name, key_digest(key))
            return self.serializer.loads(value, model)

    @traced("cache.store", record=("namespace",))
    def store(
        self,
        namespace: CacheDatabaseType,
        key: str,
        value: Any,
        expiration: Expiration = None,
    ) -> None:
        """Store value, overwriting any existing entry.

        Args:
            namespace: Cache partition.
            key: Cache key (non-empty).
            value: Value to cache (not None; JSON-serializable or a pydantic model).
            expiration: Optional TTL as timedelta or seconds.
        """
        _require_key(key)
        if value is None:
            raise InvalidArgumentException("value", "Cache value must not be None")
        px = _to_milliseconds(expiration)
        if not self.is_enabled:
            return
        with self._reporting("store", namespace):
            payload = self.serializer.dumps(value)
            self.connection.get_reference(namespace).set(key, payload, px=px)
            logger.debug(
                "Cache SET: %s/%s (TTL: %sms)", namespace.name, key_digest(key), px
            )

    @traced("cache.store", record=("namespace",))
    async def astore(
        self,
        namespace: CacheDatabaseType,
        key: str,
        value: Any,
        expiration: Expiration = None,
    ) -> None:
        """Async store; see store()."""
        _require_key(key)
        if value is None:
            raise InvalidArgumentException("value", "Cache value must not be None")
        px = _to_milliseconds(expiration)
        if not self.is_enabled:
            return
        with self._reporting("store", namespace):
            payload = self.serializer.dumps(value)
            client = await self.connection.aget_reference(namespace)
            await client.set(key, payload, px=px)
            logger.debug(
                "Cache SET: %s/%s (TTL: %sms)", namespace.name, key_digest(key), px
            )

    @traced("cache.delete", record=("namespace",))
    def delete(self, namespace: CacheDatabaseType, key: str) -> None:
        """Remove key from the namespace. Deleting a missing key is not an error."""
        _require_key(key)
        if not self.is_enabled:
            return
        with self._reporting("delete", namespace):
            self.connection.get_reference(namespace).delete(key)
            logger.debug("Cache DELETE: %s/%s", namespace.name, key_digest(key))

    @traced("cache.delete", record=("namespace",))
    async def adelete(self, namespace: CacheDatabaseType, key: str) -> None:
        """Async delete; see delete()."""
        _require_key(key)
        if not self.is_enabled:
            return
        with self._reporting("delete", namespace):
            client = await self.connection.aget_reference(namespace)
            await client.delete(key)
            logger.debug("Cache DELETE: %s/%s", namespace.name, key_digest(key))

    @traced("cache.clear", record=("namespace",))
    def clear(self, namespace: CacheDatabaseType) -> None:
        """Flush every entry in the namespace, including entries other components own."""
        if not self.is_enabled:
            return
        with self._reporting("clear", namespace):
            self.connection.get_reference(namespace).flushdb()
            logger.warning("Cache CLEARED: namespace %s", namespace.name)

    @traced("cache.clear", record=("namespace",))
    async def aclear(self, namespace: CacheDatabaseType) -> None:
        """Async clear; see clear()."""
        if not self.is_enabled:
            return
        with self._reporting("clear", namespace):
            client = await self.connection.aget_reference(namespace)
            await client.flushdb()
            logger.warning("Cache CLEARED: namespace %s", namespace.name)


def _resolve_cache(
    args: tuple[Any, ...], kwargs: dict[str, Any]
) -> tuple[CacheService | None, tuple[Any, ...], dict[str, Any]]:
    """Resolve CacheService and the args/kwargs used to build the cache key.

    Resolution order: keyword "cache", then args[0] if CacheService, then args[0].cache.
    The "cache" keyword is left out of the key kwargs; the wrapped function still receives it.
    """
    if isinstance(kwargs.get("cache"), CacheService):
        key_kwargs = {k: v for k, v in kwargs.items() if k != "cache"}
        return kwargs["cache"], args, key_kwargs
    if args:
        first = args[0]
        if isinstance(first, CacheService):
            return first, args[1:], kwargs
        cache_attr = getattr(first, "cache", None)
        if isinstance(cache_attr, CacheService):
            return cache_attr, args[1:], kwargs
    return None, args, kwargs


def cached(
    key_prefix: str,
    namespace: CacheDatabaseType = CacheDatabaseType.DATA_STRUCTURES,
    expiration: Expiration = None,
    model: Any = None,
    key_builder: Callable[..., str] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to memoize async API wrapper results in the distributed cache.

    The wrapped function must receive a CacheService as keyword "cache", as its
    first argument, or through its first argument's .cache attribute (e.g. a
    wrapper class holding the service). None results are not cached.

    Args:
        key_prefix: Prefix for the cache key (e.g. 'customers').
        namespace: Cache partition (default DATA_STRUCTURES).
        expiration: Optional TTL as timedelta or seconds. When None, DATA_STRUCTURES
            entries expire after settings.cache_ttl_data_structures seconds (0 keeps them).
        model: Optional type the cached value is validated into on a hit.
        key_builder: Optional callable(*args, **kwargs) -> key; else built from args/kwargs.

    Returns:
        Decorator that caches return values when a CacheService is resolved.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache, key_args, key_kwargs = _resolve_cache(args, kwargs)
            if cache is None:
                return await func(*args, **kwargs)
            if key_builder:
                cache_key = key_builder(*key_args, **key_kwargs)
            else:
                parts = [str(a) for a in key_args]
                parts.extend(f"{k}={v}" for k, v in sorted(key_kwargs.items()))
                cache_key = ":".join([key_prefix, *parts])
            cached_value = await cache.afetch(namespace, cache_key, model)
            if cached_value is not None:
                return cached_value
            result = await func(*args, **kwargs)
            if result is not None:
                ttl = expiration
                if ttl is None and namespace is CacheDatabaseType.DATA_STRUCTURES:
                    ttl = cache.settings.cache_ttl_data_structures or None
                await cache.astore(namespace, cache_key, result, ttl)
            return result

        return wrapper

    return decorator
