"""Data protection for payloads that leave process memory (Fernet)."""

import base64
from typing import Protocol

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from explorer.core.config import Settings
from explorer.domain.exceptions import DataProtectorException, InvalidArgumentException

KDF_ITERATIONS = 100_000


class DataProtector(Protocol):
    """Opaque encrypt/decrypt capability applied to cached payloads."""

    def protect(self, data: str) -> str:
        """Encrypt text; the result is ASCII-safe."""
        ...

    def unprotect(self, data: str) -> str:
        """Decrypt text produced by protect()."""
        ...


class FernetDataProtector:
    """Encrypt/decrypt text using Fernet (key derived from app secret and purpose).

    Protectors built with different purposes cannot read each other's output,
    so cached payloads are unreadable by any other consumer of the same secret.
    """

    def __init__(self, settings: Settings, purpose: str) -> None:
        if not purpose:
            raise InvalidArgumentException("purpose")
        self.purpose = purpose
        self._fernet = Fernet(self._derive_key(settings, purpose))

    @staticmethod
    def _derive_key(settings: Settings, purpose: str) -> bytes:
        """Derive 32-byte key from secret_key + (encryption_salt, purpose) via PBKDF2-HMAC-SHA256."""
        secret = settings.secret_key.get_secret_value()
        salt = settings.encryption_salt.get_secret_value()
        if not secret or not salt:
            raise InvalidArgumentException(
                "secret_key", "SECRET_KEY and ENCRYPTION_SALT are required for data protection"
            )
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=f"{salt}:{purpose}".encode(),
            iterations=KDF_ITERATIONS,
        )
        return base64.urlsafe_b64encode(kdf.derive(secret.encode()))

    def protect(self, data: str) -> str:
        """Encrypt data to a string safe for storage."""
        if not data:
            raise InvalidArgumentException("data")
        return self._fernet.encrypt(data.encode()).decode()

    def unprotect(self, data: str) -> str:
        """Decrypt stored string back to plaintext.

        Raises:
            DataProtectorException: If the token is invalid, tampered, or from another key.
        """
        if not data:
            raise InvalidArgumentException("data")
        try:
            return self._fernet.decrypt(data.encode()).decode()
        except InvalidToken as e:
            raise DataProtectorException() from e
