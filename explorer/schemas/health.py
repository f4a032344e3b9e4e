"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class CacheHealthResponse(BaseModel):
    """Response for GET /health/cache. Reports state only; never opens connections."""

    enabled: bool = Field(..., description="True if a Redis connection string is configured")
    namespaces: dict[str, bool] = Field(
        default_factory=dict,
        description="Namespace name -> whether its connection has been established",
    )
