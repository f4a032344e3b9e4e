"""Presentation-layer dependency injection.

Hands out the long-lived objects built in explorer.core.lifespan. Routes
depend on these, never on app.state directly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from explorer.infrastructure.cache.connection import CacheConnection
from explorer.infrastructure.cache.redis_cache import CacheService
from explorer.infrastructure.security.token_management import TokenManagement


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return value


def get_cache(request: Request) -> CacheService:
    """Cache service created at startup."""
    return _state(request, "cache")


def get_cache_connection(request: Request) -> CacheConnection:
    """Shared Redis connection handle created at startup."""
    return _state(request, "cache_connection")


def get_token_management(request: Request) -> TokenManagement:
    """Token management bound to the shared cache."""
    return _state(request, "token_management")


CacheDep = Annotated[CacheService, Depends(get_cache)]
CacheConnectionDep = Annotated[CacheConnection, Depends(get_cache_connection)]
TokenManagementDep = Annotated[TokenManagement, Depends(get_token_management)]
