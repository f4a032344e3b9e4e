"""Redis connection handle shared by every cache namespace.

One CacheConnection is created at startup (see explorer.core.lifespan) and
injected into CacheService. Clients are created on first use and memoized
for the life of the process. Creation is serialized so that concurrent
first callers end up sharing one client.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import redis
import redis.asyncio as aioredis

from explorer.core.config import Settings
from explorer.domain.exceptions import CacheUnavailableException
from explorer.infrastructure.cache.database_type import CacheDatabaseType

logger = logging.getLogger(__name__)

SyncClientFactory = Callable[[str, int], redis.Redis]
AsyncClientFactory = Callable[[str, int], aioredis.Redis]

CONNECT_ERROR_MSG = "Failed to connect to the instance of Redis Cache."


def url_for_database(url: str, db: int) -> str:
    """Return the connection URL pinned to the database index db.

    redis-py reads the index from a db query parameter first, then from the
    URL path, and lets either override an explicit db argument. Any db
    parameter is dropped and the index is written where redis-py will read
    it: the path for redis:// and rediss://, the query for unix:// (whose
    path is the socket file).
    """
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "db"]
    if parts.scheme == "unix":
        query.append(("db", str(db)))
        return f"unix://{parts.netloc}{parts.path}?{urlencode(query)}"
    return urlunsplit((parts.scheme, parts.netloc, f"/{db}", urlencode(query), parts.fragment))


class CacheConnection:
    """Lazily established Redis clients, one sync and one async per namespace.

    get_reference / aget_reference return the memoized client without I/O
    once it exists. Otherwise they build it, PING it, and memoize it only
    on success; a failed attempt leaves nothing behind so the next call retries.
    """

    def __init__(
        self,
        settings: Settings,
        sync_client_factory: SyncClientFactory | None = None,
        async_client_factory: AsyncClientFactory | None = None,
    ) -> None:
        """Initialize the connection handle.

        Args:
            settings: Supplies redis_cache_connection_string and socket timeout.
            sync_client_factory: Optional (url, db) -> redis.Redis, for testing or DI.
            async_client_factory: Optional (url, db) -> redis.asyncio.Redis, for testing or DI.
        """
        self.settings = settings
        self._sync_factory = sync_client_factory or self._default_sync_factory
        self._async_factory = async_client_factory or self._default_async_factory
        self._sync_clients: dict[CacheDatabaseType, redis.Redis] = {}
        self._async_clients: dict[CacheDatabaseType, aioredis.Redis] = {}
        self._sync_lock = threading.Lock()
        self._async_lock = asyncio.Lock()

    def _default_sync_factory(self, url: str, db: int) -> redis.Redis:
        return redis.Redis.from_url(
            url_for_database(url, db),
            decode_responses=True,
            socket_connect_timeout=self.settings.redis_socket_timeout,
            socket_timeout=self.settings.redis_socket_timeout,
            socket_keepalive=True,
        )

    def _default_async_factory(self, url: str, db: int) -> aioredis.Redis:
        return aioredis.Redis.from_url(
            url_for_database(url, db),
            decode_responses=True,
            socket_connect_timeout=self.settings.redis_socket_timeout,
            socket_timeout=self.settings.redis_socket_timeout,
            socket_keepalive=True,
        )

    def _connection_string(self, namespace: CacheDatabaseType) -> str:
        url = self.settings.redis_cache_connection_string.get_secret_value()
        if not url:
            raise CacheUnavailableException(
                "Redis cache connection string is not configured", namespace.name
            )
        return url

    def is_connected(self, namespace: CacheDatabaseType) -> bool:
        """Return True if a client for namespace has been established (sync or async)."""
        return namespace in self._sync_clients or namespace in self._async_clients

    def get_reference(self, namespace: CacheDatabaseType) -> redis.Redis:
        """Return the synchronous client for namespace, connecting on first use.

        Raises:
            CacheUnavailableException: If the connection cannot be established.
        """
        client = self._sync_clients.get(namespace)
        if client is not None:
            return client
        with self._sync_lock:
            client = self._sync_clients.get(namespace)
            if client is not None:
                return client
            url = self._connection_string(namespace)
            client = self._sync_factory(url, int(namespace))
            try:
                client.ping()
            except redis.RedisError as e:
                logger.warning("Redis connection failed for %s: %s", namespace.name, e)
                client.close()
                raise CacheUnavailableException(CONNECT_ERROR_MSG, namespace.name) from e
            self._sync_clients[namespace] = client
            logger.info("Redis cache connected (sync): namespace=%s", namespace.name)
            return client

    async def aget_reference(self, namespace: CacheDatabaseType) -> aioredis.Redis:
        """Return the asyncio client for namespace, connecting on first use.

        Raises:
            CacheUnavailableException: If the connection cannot be established.
        """
        client = self._async_clients.get(namespace)
        if client is not None:
            return client
        async with self._async_lock:
            client = self._async_clients.get(namespace)
            if client is not None:
                return client
            url = self._connection_string(namespace)
            client = self._async_factory(url, int(namespace))
            try:
                await client.ping()
            except redis.RedisError as e:
                logger.warning("Redis connection failed for %s: %s", namespace.name, e)
                await client.aclose()
                raise CacheUnavailableException(CONNECT_ERROR_MSG, namespace.name) from e
            self._async_clients[namespace] = client
            logger.info("Redis cache connected (async): namespace=%s", namespace.name)
            return client

    def close(self) -> None:
        """Close every synchronous client. Call on app shutdown."""
        with self._sync_lock:
            clients = list(self._sync_clients.values())
            self._sync_clients.clear()
        for client in clients:
            client.close()

    async def aclose(self) -> None:
        """Close every client (async and sync). Call on app shutdown."""
        async with self._async_lock:
            clients = list(self._async_clients.values())
            self._async_clients.clear()
        for client in clients:
            await client.aclose()
        self.close()
        logger.info("Redis cache disconnected")
