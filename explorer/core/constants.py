"""Core constants: cache key segments and shared literal values.

Token cache keys are persisted in Redis, so these strings must not change
once deployed (a new format orphans every cached token).
"""

# Delimiter for composite token cache keys
CACHE_KEY_SEP = "::"

CACHE_KEY_RESOURCE = "Resource"
CACHE_KEY_IDENTIFIER = "Identifier"
CACHE_KEY_APP_ONLY = "AppOnly"
CACHE_KEY_PARTNER_CENTER = "PartnerCenter"

# Envelope markers for cached payloads (see infrastructure.cache.serialization)
PAYLOAD_PREFIX_JSON = "j:"
PAYLOAD_PREFIX_ZLIB = "z:"

# Purpose string mixed into the data protector key for cache payloads
CACHE_PROTECTOR_PURPOSE = "explorer.infrastructure.cache.CacheService"

# Azure AD error raised when the cached refresh token belongs to a stale grant
AAD_INVALID_GRANT_CODE = "AADSTS70002"
