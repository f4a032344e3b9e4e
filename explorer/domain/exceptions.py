"""Domain exceptions for the Explorer application.

Cache, data protection, and token acquisition failures all derive from
ExplorerException so the presentation layer can map them to HTTP
responses consistently (see explorer.core.exception_handlers).
"""

from typing import Any


class ExplorerException(Exception):
    """Base exception for all Explorer application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. argument name, cache key).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentException(ExplorerException):
    """Raised when a caller passes an empty key, a None value, or similar.

    Always a programming error; never retried.
    """

    def __init__(self, argument: str, message: str | None = None) -> None:
        """Initialize with the offending argument name.

        Args:
            argument: Name of the parameter that failed validation.
            message: Optional override for the default message.
        """
        super().__init__(
            message or f"Argument '{argument}' must not be empty",
            "INVALID_ARGUMENT",
            {"argument": argument},
        )


class CacheException(ExplorerException):
    """Base exception for distributed cache failures."""


class CacheUnavailableException(CacheException):
    """Connection or transport failure talking to Redis.

    The underlying redis error is chained as __cause__. Callers may treat
    the cache as empty and continue, since the cache is not a system of record.
    """

    def __init__(self, message: str, namespace: str | None = None) -> None:
        details = {"namespace": namespace} if namespace else {}
        super().__init__(message, "CACHE_UNAVAILABLE", details)


class CacheSerializationException(CacheException):
    """Cached payload could not be decoded (corrupted envelope or JSON)."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Failed to decode cached payload: {reason}",
            "CACHE_SERIALIZATION_ERROR",
            {"reason": reason},
        )


class DataProtectorException(ExplorerException):
    """Payload could not be decrypted (wrong key, tampered or truncated data)."""

    def __init__(self, message: str = "Unable to unprotect the specified data.") -> None:
        super().__init__(message, "DATA_PROTECTOR_ERROR")


class TokenAcquisitionException(ExplorerException):
    """Azure AD did not return an access token."""

    def __init__(
        self,
        resource: str,
        error: str | None = None,
        description: str | None = None,
    ) -> None:
        """Initialize with the requested resource and the AAD error fields.

        Args:
            resource: Resource (audience) the token was requested for.
            error: AAD error code (e.g. invalid_grant).
            description: AAD error_description, if any.
        """
        details: dict[str, Any] = {"resource": resource}
        if error:
            details["error"] = error
        super().__init__(
            f"Failed to acquire token for {resource}: {description or error or 'unknown error'}",
            "TOKEN_ACQUISITION_ERROR",
            details,
        )
