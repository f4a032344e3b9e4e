"""Cache namespaces. Each value is the Redis logical database index."""

from enum import IntEnum


class CacheDatabaseType(IntEnum):
    """Logical partition of the distributed cache.

    The integer values select the Redis database and are persisted implicitly:
    renumbering moves existing entries out of reach. Append only.
    """

    AUTHENTICATION = 0
    DATA_STRUCTURES = 1
