"""Tests for domain exceptions (error_code, message, details)."""

from explorer.domain.exceptions import (
    CacheException,
    CacheSerializationException,
    CacheUnavailableException,
    DataProtectorException,
    ExplorerException,
    InvalidArgumentException,
    TokenAcquisitionException,
)


def test_explorer_exception_default_error_code() -> None:
    """Base ExplorerException uses class name as error_code when not provided."""
    exc = ExplorerException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "ExplorerException"
    assert exc.details == {}


def test_explorer_exception_to_dict() -> None:
    exc = ExplorerException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}
    assert str(exc) == "Oops"


def test_invalid_argument_exception() -> None:
    """InvalidArgumentException names the offending argument."""
    exc = InvalidArgumentException("key")
    assert exc.error_code == "INVALID_ARGUMENT"
    assert exc.details == {"argument": "key"}
    assert "key" in exc.message


def test_invalid_argument_exception_custom_message() -> None:
    exc = InvalidArgumentException("expiration", "Cache expiration must be positive")
    assert exc.message == "Cache expiration must be positive"


def test_cache_unavailable_exception() -> None:
    """CacheUnavailableException carries the namespace when known."""
    exc = CacheUnavailableException("down", "AUTHENTICATION")
    assert isinstance(exc, CacheException)
    assert exc.error_code == "CACHE_UNAVAILABLE"
    assert exc.details == {"namespace": "AUTHENTICATION"}
    assert CacheUnavailableException("down").details == {}


def test_cache_serialization_exception() -> None:
    exc = CacheSerializationException("invalid JSON")
    assert isinstance(exc, CacheException)
    assert exc.error_code == "CACHE_SERIALIZATION_ERROR"
    assert exc.details == {"reason": "invalid JSON"}


def test_data_protector_exception_default_message() -> None:
    exc = DataProtectorException()
    assert exc.message == "Unable to unprotect the specified data."
    assert exc.error_code == "DATA_PROTECTOR_ERROR"


def test_token_acquisition_exception() -> None:
    """TokenAcquisitionException prefers the AAD description in its message."""
    exc = TokenAcquisitionException(
        "https://graph.windows.net", "invalid_grant", "AADSTS70002: stale grant"
    )
    assert exc.error_code == "TOKEN_ACQUISITION_ERROR"
    assert exc.details == {"resource": "https://graph.windows.net", "error": "invalid_grant"}
    assert "AADSTS70002" in exc.message


def test_token_acquisition_exception_without_error() -> None:
    exc = TokenAcquisitionException("https://graph.windows.net")
    assert exc.details == {"resource": "https://graph.windows.net"}
    assert exc.message.endswith("unknown error")
