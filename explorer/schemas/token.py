"""Token schemas returned by token management and stored in the cache."""

from datetime import datetime

from pydantic import BaseModel, Field

from explorer.shared.utils.datetime import ensure_utc, utc_now


class AuthenticationToken(BaseModel):
    """Access token acquired from Azure AD."""

    access_token: str = Field(..., description="Bearer token value")
    expires_at: datetime = Field(..., description="UTC expiry instant")

    def is_near_expiry(self, minutes: int = 5) -> bool:
        """True when the token expires within `minutes` (or already has)."""
        return (ensure_utc(self.expires_at) - utc_now()).total_seconds() <= minutes * 60


class PartnerCenterToken(BaseModel):
    """Partner Center credentials cached in the AUTHENTICATION namespace."""

    partner_service_token: str = Field(..., description="Partner Center service token")
    expires_at: datetime = Field(..., description="UTC expiry instant")

    def is_expired(self) -> bool:
        """True once the current UTC time has reached expires_at."""
        return utc_now() >= ensure_utc(self.expires_at)
