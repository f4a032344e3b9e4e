"""Pytest configuration and fixtures for the Explorer cache layer.

Redis is replaced by fakeredis: sync and asyncio clients share one
FakeServer, so data written through either API is visible to both and
each namespace maps to its own fake database.
"""

import os

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient

from explorer.core.config import Settings, get_settings
from explorer.infrastructure.cache.connection import CacheConnection
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.infrastructure.cache.redis_cache import CacheService
from explorer.infrastructure.security.data_protector import FernetDataProtector

TEST_REDIS_URL = "redis://cache.test:6379/0"
TEST_PURPOSE = "tests.cache"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "redis_cache_connection_string": TEST_REDIS_URL,
        "secret_key": "test-secret-key-for-cache-encryption",
        "encryption_salt": "test-salt",
        "cache_compression_threshold_bytes": 256,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    """Settings with the cache enabled."""
    return make_settings()


@pytest.fixture
def disabled_settings() -> Settings:
    """Settings with no connection string (cache disabled)."""
    return make_settings(redis_cache_connection_string="")


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def connection(settings: Settings, fake_server: fakeredis.FakeServer) -> CacheConnection:
    """CacheConnection whose clients talk to the shared fake server."""
    return CacheConnection(
        settings,
        sync_client_factory=lambda url, db: fakeredis.FakeRedis(
            server=fake_server, db=db, decode_responses=True
        ),
        async_client_factory=lambda url, db: fakeredis.FakeAsyncRedis(
            server=fake_server, db=db, decode_responses=True
        ),
    )


@pytest.fixture
def protector(settings: Settings) -> FernetDataProtector:
    return FernetDataProtector(settings, TEST_PURPOSE)


@pytest.fixture
def cache(
    settings: Settings, connection: CacheConnection, protector: FernetDataProtector
) -> CacheService:
    """Enabled CacheService over fakeredis."""
    return CacheService(settings, connection, protector)


@pytest.fixture
def raw_redis(fake_server: fakeredis.FakeServer):
    """Return a factory for raw fake clients on a given database index."""

    def _client(db: int) -> fakeredis.FakeRedis:
        return fakeredis.FakeRedis(server=fake_server, db=db, decode_responses=True)

    return _client


@pytest.fixture
async def client(monkeypatch: pytest.MonkeyPatch) -> AsyncClient:
    """Async HTTP client against a fresh app with lifespan run (cache disabled)."""
    monkeypatch.setenv("REDIS_CACHE_CONNECTION_STRING", "")
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")
    get_settings.cache_clear()
    from explorer.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    get_settings.cache_clear()


@pytest.fixture
def settings_factory():
    """Return make_settings for tests that need one-off overrides."""
    return make_settings


@pytest.fixture
async def real_cache():
    """CacheService against a real Redis; skips when none is configured.

    Use @pytest.mark.requires_redis for tests that need this fixture; run
    without Redis via: pytest -m 'not requires_redis'. Both namespaces are
    flushed before and after each test, so point it at a scratch instance.
    """
    url = os.environ.get("TEST_REDIS_CACHE_CONNECTION_STRING", "")
    if not url:
        pytest.skip("Redis not configured: set TEST_REDIS_CACHE_CONNECTION_STRING")
    s = make_settings(redis_cache_connection_string=url)
    connection = CacheConnection(s)
    service = CacheService(s, connection, FernetDataProtector(s, TEST_PURPOSE))
    for namespace in CacheDatabaseType:
        await service.aclear(namespace)
    yield service
    for namespace in CacheDatabaseType:
        await service.aclear(namespace)
    await connection.aclose()
