"""Domain layer: exceptions shared by cache, security, and API code."""

from explorer.domain.exceptions import (
    CacheException,
    CacheSerializationException,
    CacheUnavailableException,
    DataProtectorException,
    ExplorerException,
    InvalidArgumentException,
    TokenAcquisitionException,
)

__all__ = [
    "CacheException",
    "CacheSerializationException",
    "CacheUnavailableException",
    "DataProtectorException",
    "ExplorerException",
    "InvalidArgumentException",
    "TokenAcquisitionException",
]
