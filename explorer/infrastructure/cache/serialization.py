"""Payload pipeline for cache entries: JSON, optional zlib, always encrypted.

Write: value -> JSON -> envelope ("j:" + JSON, or "z:" + base64(zlib(JSON))
when larger than the threshold) -> DataProtector.protect.
Read reverses it. Values may be pydantic models, dataclasses, or plain JSON
types; reads validate into a requested type through a pydantic TypeAdapter.
"""

import base64
import binascii
import json
import zlib
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic_core import to_json

from explorer.core.constants import PAYLOAD_PREFIX_JSON, PAYLOAD_PREFIX_ZLIB
from explorer.domain.exceptions import CacheSerializationException
from explorer.infrastructure.security.data_protector import DataProtector


@lru_cache(maxsize=128)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


class CacheSerializer:
    """Turns values into protected strings and back."""

    def __init__(self, protector: DataProtector, compression_threshold: int = 1024) -> None:
        """Initialize serializer.

        Args:
            protector: Encrypts envelopes before they reach Redis.
            compression_threshold: JSON payloads larger than this many bytes are zlib-compressed.
        """
        self.protector = protector
        self.compression_threshold = compression_threshold

    def envelope(self, value: Any) -> str:
        """Serialize value to an unencrypted envelope string."""
        raw = to_json(value)
        if len(raw) > self.compression_threshold:
            packed = base64.b64encode(zlib.compress(raw)).decode("ascii")
            return PAYLOAD_PREFIX_ZLIB + packed
        return PAYLOAD_PREFIX_JSON + raw.decode("utf-8")

    def open_envelope(self, envelope: str) -> Any:
        """Return the decoded JSON value inside an envelope.

        Raises:
            CacheSerializationException: Unknown prefix, bad base64/zlib, or invalid JSON.
        """
        try:
            if envelope.startswith(PAYLOAD_PREFIX_JSON):
                text = envelope[len(PAYLOAD_PREFIX_JSON):]
            elif envelope.startswith(PAYLOAD_PREFIX_ZLIB):
                packed = base64.b64decode(envelope[len(PAYLOAD_PREFIX_ZLIB):], validate=True)
                text = zlib.decompress(packed).decode("utf-8")
            else:
                raise CacheSerializationException("unknown envelope prefix")
            return json.loads(text)
        except (binascii.Error, zlib.error, UnicodeDecodeError) as e:
            raise CacheSerializationException(f"corrupted compressed payload ({e})") from e
        except json.JSONDecodeError as e:
            raise CacheSerializationException(f"invalid JSON ({e.msg})") from e

    def dumps(self, value: Any) -> str:
        """Serialize and protect value for storage."""
        return self.protector.protect(self.envelope(value))

    def loads(self, payload: str, model: Any = None) -> Any:
        """Unprotect and deserialize a stored payload.

        Args:
            payload: String read from Redis.
            model: Optional target type (pydantic model, list[Model], str, ...).

        Returns:
            Validated instance of model, or the plain JSON value when model is None.
        """
        data = self.open_envelope(self.protector.unprotect(payload))
        if model is None:
            return data
        return _adapter(model).validate_python(data)
