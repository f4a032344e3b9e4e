"""Cache protocol consumed by the token cache and API wrappers (DIP)."""

from datetime import timedelta
from typing import Any, Protocol, TypeVar

from explorer.infrastructure.cache.database_type import CacheDatabaseType

T = TypeVar("T")

Expiration = timedelta | int | float | None


class CacheProtocol(Protocol):
    """Namespaced get/set/delete/clear API, synchronous and asynchronous."""

    @property
    def is_enabled(self) -> bool:
        """Return True if a cache backend is configured."""
        ...

    def fetch(
        self, namespace: CacheDatabaseType, key: str, model: type[T] | None = None
    ) -> Any:
        """Return cached value (validated into model when given) or None."""
        ...

    async def afetch(
        self, namespace: CacheDatabaseType, key: str, model: type[T] | None = None
    ) -> Any:
        """Async fetch."""
        ...

    def store(
        self,
        namespace: CacheDatabaseType,
        key: str,
        value: Any,
        expiration: Expiration = None,
    ) -> None:
        """Store value, overwriting any existing entry; optional TTL."""
        ...

    async def astore(
        self,
        namespace: CacheDatabaseType,
        key: str,
        value: Any,
        expiration: Expiration = None,
    ) -> None:
        """Async store."""
        ...

    def delete(self, namespace: CacheDatabaseType, key: str) -> None:
        """Remove key; no error when missing."""
        ...

    async def adelete(self, namespace: CacheDatabaseType, key: str) -> None:
        """Async delete."""
        ...

    def clear(self, namespace: CacheDatabaseType) -> None:
        """Remove every entry in the namespace."""
        ...

    async def aclear(self, namespace: CacheDatabaseType) -> None:
        """Async clear."""
        ...
