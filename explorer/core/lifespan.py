"""Application lifespan: startup and shutdown.

Builds the long-lived cache context (connection handle, data protector,
cache service, token management) once and hangs it on app.state; request
code receives it through explorer.api.v1.dependencies.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from explorer.core.config import get_settings
from explorer.core.constants import CACHE_PROTECTOR_PURPOSE
from explorer.infrastructure.cache.connection import CacheConnection
from explorer.infrastructure.cache.redis_cache import CacheService
from explorer.infrastructure.security.data_protector import FernetDataProtector
from explorer.infrastructure.security.token_management import TokenManagement
from explorer.shared.telemetry.events import SpanTelemetryProvider
from explorer.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, telemetry (if enabled), cache context.
    Shutdown order: cache connection close, telemetry shutdown.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.telemetry_enabled:
        from explorer.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry_config = TelemetryConfig.from_settings(settings)
        telemetry_config.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry_config)
        telemetry_config.instrument(app)

    telemetry = SpanTelemetryProvider()
    connection = CacheConnection(settings)
    if settings.cache_enabled:
        protector = FernetDataProtector(settings, CACHE_PROTECTOR_PURPOSE)
        cache = CacheService(settings, connection, protector, telemetry=telemetry)
        logger.info("Distributed cache enabled")
    else:
        # Disabled cache never touches the protector; skip key derivation.
        cache = CacheService(settings, connection, _NullProtector(), telemetry=telemetry)
        logger.info("Distributed cache disabled (no REDIS_CACHE_CONNECTION_STRING)")

    app.state.cache_connection = connection
    app.state.cache = cache
    app.state.token_management = TokenManagement(settings, cache, telemetry=telemetry)

    yield

    # ---- Shutdown ----
    await connection.aclose()

    from explorer.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)


class _NullProtector:
    """Placeholder protector for a disabled cache; any use is a bug."""

    def protect(self, data: str) -> str:
        raise RuntimeError("Data protector used while the cache is disabled")

    def unprotect(self, data: str) -> str:
        raise RuntimeError("Data protector used while the cache is disabled")
