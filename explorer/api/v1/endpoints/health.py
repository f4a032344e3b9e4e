"""Health check endpoints, used for liveness probes and cache diagnostics."""

from fastapi import APIRouter

from explorer.api.v1.dependencies import CacheConnectionDep, CacheDep
from explorer.infrastructure.cache.database_type import CacheDatabaseType
from explorer.schemas.health import CacheHealthResponse, HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/cache", response_model=CacheHealthResponse)
def cache_health(cache: CacheDep, connection: CacheConnectionDep) -> CacheHealthResponse:
    """Report whether the cache is enabled and which namespaces are connected.

    Does not open connections; a namespace shows False until first used.
    """
    return CacheHealthResponse(
        enabled=cache.is_enabled,
        namespaces={ns.name: connection.is_connected(ns) for ns in CacheDatabaseType},
    )
