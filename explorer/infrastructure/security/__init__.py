"""Security: data protection and Azure AD token management.

TokenManagement depends on the cache package, which depends on the data
protector; import it from explorer.infrastructure.security.token_management.
"""

from explorer.infrastructure.security.data_protector import DataProtector, FernetDataProtector

__all__ = [
    "DataProtector",
    "FernetDataProtector",
]
