"""Tests for CacheConnection (lazy per-namespace clients)."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import AsyncMock, MagicMock

import fakeredis
import pytest
import redis

from explorer.core.config import Settings
from explorer.domain.exceptions import CacheUnavailableException
from explorer.infrastructure.cache.connection import (
    CONNECT_ERROR_MSG,
    CacheConnection,
    url_for_database,
)
from explorer.infrastructure.cache.database_type import CacheDatabaseType

AUTH = CacheDatabaseType.AUTHENTICATION
DATA = CacheDatabaseType.DATA_STRUCTURES


class CountingFactory:
    """Client factory that records how many clients it built."""

    def __init__(self, server: fakeredis.FakeServer, asynchronous: bool = False) -> None:
        self.server = server
        self.asynchronous = asynchronous
        self.calls: list[tuple[str, int]] = []

    def __call__(self, url: str, db: int):
        self.calls.append((url, db))
        cls = fakeredis.FakeAsyncRedis if self.asynchronous else fakeredis.FakeRedis
        return cls(server=self.server, db=db, decode_responses=True)


@pytest.mark.parametrize(
    ("url", "db", "expected"),
    [
        ("redis://cache:6379/0", 1, "redis://cache:6379/1"),
        ("redis://cache:6379", 0, "redis://cache:6379/0"),
        ("rediss://:secret@cache:6380/5?ssl_cert_reqs=none", 1,
         "rediss://:secret@cache:6380/1?ssl_cert_reqs=none"),
        ("redis://cache:6379?db=3", 1, "redis://cache:6379/1"),
        ("redis://cache:6379/2?db=3&health_check_interval=10", 0,
         "redis://cache:6379/0?health_check_interval=10"),
        ("unix:///var/run/redis.sock", 1, "unix:///var/run/redis.sock?db=1"),
        ("unix:///var/run/redis.sock?db=4&password=x", 0,
         "unix:///var/run/redis.sock?password=x&db=0"),
    ],
)
def test_url_for_database(url: str, db: int, expected: str) -> None:
    assert url_for_database(url, db) == expected


@pytest.mark.parametrize(
    "url",
    ["redis://cache:6379?db=3", "redis://cache:6379/3", "unix:///var/run/redis.sock?db=3"],
)
def test_namespaces_resolve_to_their_own_database(url: str) -> None:
    for namespace in CacheDatabaseType:
        client = redis.Redis.from_url(url_for_database(url, int(namespace)))
        assert client.connection_pool.connection_kwargs["db"] == int(namespace)


def test_unix_socket_path_is_kept() -> None:
    client = redis.Redis.from_url(url_for_database("unix:///var/run/redis.sock", 1))
    assert client.connection_pool.connection_kwargs["path"] == "/var/run/redis.sock"


class TestSyncReference:
    def test_client_is_memoized_per_namespace(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server)
        connection = CacheConnection(settings, sync_client_factory=factory)

        first = connection.get_reference(AUTH)
        second = connection.get_reference(AUTH)
        other = connection.get_reference(DATA)

        assert first is second
        assert other is not first
        assert [db for _, db in factory.calls] == [0, 1]

    def test_not_connected_until_first_use(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        connection = CacheConnection(settings, sync_client_factory=CountingFactory(fake_server))
        assert connection.is_connected(AUTH) is False
        connection.get_reference(AUTH)
        assert connection.is_connected(AUTH) is True
        assert connection.is_connected(DATA) is False

    def test_failure_is_not_memoized(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server)
        connection = CacheConnection(settings, sync_client_factory=factory)

        fake_server.connected = False
        with pytest.raises(CacheUnavailableException) as exc_info:
            connection.get_reference(DATA)
        assert exc_info.value.message == CONNECT_ERROR_MSG
        assert exc_info.value.__cause__ is not None
        assert connection.is_connected(DATA) is False

        fake_server.connected = True
        client = connection.get_reference(DATA)
        assert client.ping() is True
        assert len(factory.calls) == 2

    def test_missing_connection_string(self, disabled_settings: Settings) -> None:
        connection = CacheConnection(disabled_settings)
        with pytest.raises(CacheUnavailableException) as exc_info:
            connection.get_reference(AUTH)
        assert exc_info.value.details == {"namespace": "AUTHENTICATION"}

    def test_close_forgets_clients(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server)
        connection = CacheConnection(settings, sync_client_factory=factory)
        connection.get_reference(AUTH)
        connection.close()
        assert connection.is_connected(AUTH) is False
        connection.get_reference(AUTH)
        assert len(factory.calls) == 2

    def test_concurrent_first_callers_share_one_client(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server)
        connection = CacheConnection(settings, sync_client_factory=factory)
        workers = 8
        barrier = threading.Barrier(workers)

        def first_use():
            barrier.wait()
            return connection.get_reference(DATA)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            clients = list(pool.map(lambda _: first_use(), range(workers)))

        assert len(factory.calls) == 1
        assert all(c is clients[0] for c in clients)

    def test_server_error_on_ping_is_unavailable(self, settings: Settings) -> None:
        client = MagicMock()
        client.ping.side_effect = redis.ResponseError("DB index is out of range")
        connection = CacheConnection(settings, sync_client_factory=lambda url, db: client)

        with pytest.raises(CacheUnavailableException) as exc_info:
            connection.get_reference(DATA)

        assert isinstance(exc_info.value.__cause__, redis.ResponseError)
        client.close.assert_called_once()
        assert connection.is_connected(DATA) is False


class TestAsyncReference:
    async def test_concurrent_first_callers_share_one_client(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server, asynchronous=True)
        connection = CacheConnection(settings, async_client_factory=factory)

        clients = await asyncio.gather(*(connection.aget_reference(DATA) for _ in range(10)))

        assert len(factory.calls) == 1
        assert all(c is clients[0] for c in clients)

    async def test_failure_then_recovery(
        self, settings: Settings, fake_server: fakeredis.FakeServer
    ) -> None:
        factory = CountingFactory(fake_server, asynchronous=True)
        connection = CacheConnection(settings, async_client_factory=factory)

        fake_server.connected = False
        with pytest.raises(CacheUnavailableException):
            await connection.aget_reference(AUTH)
        assert connection.is_connected(AUTH) is False

        fake_server.connected = True
        client = await connection.aget_reference(AUTH)
        assert await client.ping() is True
        assert connection.is_connected(AUTH) is True

    async def test_sync_and_async_clients_are_independent(
        self, connection: CacheConnection
    ) -> None:
        sync_client = connection.get_reference(DATA)
        async_client = await connection.aget_reference(DATA)
        sync_client.set("shared", "yes")
        assert await async_client.get("shared") == "yes"

    async def test_aclose_closes_everything(self, connection: CacheConnection) -> None:
        connection.get_reference(AUTH)
        await connection.aget_reference(DATA)
        await connection.aclose()
        assert connection.is_connected(AUTH) is False
        assert connection.is_connected(DATA) is False

    async def test_server_error_on_ping_is_unavailable(self, settings: Settings) -> None:
        client = MagicMock()
        client.ping = AsyncMock(side_effect=redis.ResponseError("DB index is out of range"))
        client.aclose = AsyncMock()
        connection = CacheConnection(settings, async_client_factory=lambda url, db: client)

        with pytest.raises(CacheUnavailableException):
            await connection.aget_reference(AUTH)

        client.aclose.assert_awaited_once()
        assert connection.is_connected(AUTH) is False
