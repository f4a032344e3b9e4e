"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. The cache layer only needs the Redis connection
string; everything else is for token acquisition and telemetry.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    An empty REDIS_CACHE_CONNECTION_STRING disables the distributed cache;
    every cache operation then becomes a no-op.
    """

    # App
    app_name: str = "partner-center-explorer"
    app_version: str = "1.0.0"
    debug: bool = False

    # Redis cache (e.g. redis://:password@host:6379 or rediss:// for TLS).
    # The database index is chosen per cache namespace, never from the URL.
    redis_cache_connection_string: SecretStr = SecretStr("")
    redis_socket_timeout: float = 5.0
    cache_compression_threshold_bytes: int = 1024
    # Default TTL (seconds) for @cached results in DATA_STRUCTURES; 0 means no expiry
    cache_ttl_data_structures: int = 900

    # Data protection (Fernet key derived from these via PBKDF2)
    secret_key: SecretStr = SecretStr("")
    encryption_salt: SecretStr = SecretStr("")

    # Azure AD application used for app-only and on-behalf-of tokens
    active_directory_endpoint: str = "https://login.microsoftonline.com"
    application_id: str = ""
    application_secret: SecretStr = SecretStr("")
    application_tenant_id: str = ""

    # Request / middleware
    allowed_origins: str = "http://localhost:3000"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def cache_enabled(self) -> bool:
        """True when a Redis connection string is configured."""
        return bool(self.redis_cache_connection_string.get_secret_value())

    @model_validator(mode="after")
    def validate_cache_secrets(self) -> "Settings":
        """Cached payloads are always encrypted, so the cache needs key material."""
        if not self.cache_enabled:
            return self
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required when REDIS_CACHE_CONNECTION_STRING is set. "
                "Generate with: openssl rand -hex 32."
            )
        if not self.encryption_salt.get_secret_value():
            raise ValueError(
                "ENCRYPTION_SALT is required when REDIS_CACHE_CONNECTION_STRING is set. "
                "Generate with: openssl rand -hex 16."
            )
        if self.cache_compression_threshold_bytes < 0:
            raise ValueError("CACHE_COMPRESSION_THRESHOLD_BYTES must be >= 0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars
    so the next get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
