"""Pydantic schemas for API responses and cached models."""

from explorer.schemas.health import CacheHealthResponse, HealthResponse
from explorer.schemas.token import AuthenticationToken, PartnerCenterToken

__all__ = [
    "AuthenticationToken",
    "CacheHealthResponse",
    "HealthResponse",
    "PartnerCenterToken",
]
