"""
FieldCipher service - encrypt values into envelopes and back.

Usage:
    from fieldcipher import CryptographyService, Settings

    service = CryptographyService(Settings(key="my-secret", passes=4))

    envelope = service.encrypt("4111-1111-1111-1111")
    # '{AES}$4$16$...'
    service.decrypt(envelope)
    # '4111-1111-1111-1111'

    envelope = service.encrypt_object(customer, SerializerFormat.JSON)
    # '{AES}$4$16$JSON$...'
    service.decrypt_object(envelope, Customer)

Key and pass count fall back to the injected Settings when a call site
does not supply them (blank keys and negative pass counts count as unset).
Decryption always uses the pass count recorded in the envelope.
"""

import asyncio
from functools import lru_cache
from typing import Any, Type, TypeVar

from fieldcipher.ciphers import AESCBCCipher
from fieldcipher.config import Settings, get_settings
from fieldcipher.encoding import (
    Envelope,
    format_envelope,
    format_of,
    from_base64,
    is_envelope,
    parse_envelope,
    to_base64,
)
from fieldcipher.errors import DecryptionError, InvalidEnvelopeError
from fieldcipher.fingerprint import (
    generate_index,
    generate_object_index,
    index_matches,
    object_index_matches,
)
from fieldcipher.logging import log_operation
from fieldcipher.passes import (
    decrypt_passes,
    decrypt_passes_async,
    encrypt_passes,
    encrypt_passes_async,
)
from fieldcipher.serializer import SerializerFormat, deserialize, serialize

T = TypeVar("T")


def _to_bytes(value: Any) -> bytes:
    return ("" if value is None else str(value)).encode("utf-8")


def _to_text(buffer: bytes) -> str:
    try:
        return buffer.decode("utf-8")
    except UnicodeDecodeError:
        raise DecryptionError() from None


class CryptographyService:
    """
    Envelope encryption with injected defaults.

    Instances hold no mutable state; a single instance can be shared
    across threads and tasks.
    """

    IV_LENGTH = AESCBCCipher.IV_SIZE

    def __init__(self, settings: Settings | None = None):
        self.settings = settings if settings is not None else get_settings()

    def __repr__(self) -> str:
        return f"CryptographyService(passes={self.settings.passes})"

    # ------------------------------------------------------------------
    # Envelope helpers
    # ------------------------------------------------------------------

    def _open(self, envelope: str) -> Envelope:
        parsed = parse_envelope(envelope, strict=True)
        if parsed.iv_length != self.IV_LENGTH:
            raise InvalidEnvelopeError(
                f"Invalid Hash: IV length {parsed.iv_length}, expected {self.IV_LENGTH}"
            )
        return parsed

    def validate(self, envelope: str) -> bool:
        """Check whether text is a well-formed envelope."""
        return is_envelope(envelope)

    def is_serialized_value(self, envelope: str) -> bool:
        """Check whether an envelope holds a serialized object (has a format tag)."""
        return parse_envelope(envelope).has_format

    def serialization_format(self, envelope: str) -> SerializerFormat:
        """Get the format tag of a serialized-object envelope."""
        return format_of(envelope)

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt_raw(self, value: Any, passes: int | None = None, key: str | None = None) -> bytes:
        """Encrypt the string form of a value and return the raw buffer."""
        key = self.settings.resolve_key(key)
        passes = self.settings.resolve_passes(passes)
        return encrypt_passes(_to_bytes(value), key, passes)

    @log_operation("encrypt")
    def encrypt(
        self,
        value: Any,
        passes: int | None = None,
        key: str | None = None,
        fmt: SerializerFormat | None = None,
    ) -> str:
        """
        Encrypt the string form of a value into an envelope.

        Args:
            value: Value to encrypt (``str(value)``; None encrypts "")
            passes: Pass count override
            key: Secret key override
            fmt: Format tag to record (the value is not serialized here)

        Returns:
            Envelope text

        Raises:
            CryptoKeyError: If no key is supplied or configured
        """
        passes = self.settings.resolve_passes(passes)
        buffer = self.encrypt_raw(value, passes, key)
        return format_envelope(passes, self.IV_LENGTH, buffer, fmt)

    def encrypt_object(
        self,
        obj: Any,
        fmt: SerializerFormat = SerializerFormat.JSON,
        passes: int | None = None,
        key: str | None = None,
    ) -> str:
        """Serialize an object and encrypt it into a format-tagged envelope."""
        fmt = SerializerFormat.parse(fmt)
        return self.encrypt(serialize(obj, fmt), passes, key, fmt)

    def encrypt_external(self, value: Any, passes: int | None = None, key: str | None = None) -> str:
        """Encrypt a value to bare base64 (no envelope)."""
        return to_base64(self.encrypt_raw(value, passes, key))

    @log_operation("encrypt")
    async def encrypt_async(
        self,
        value: Any,
        passes: int | None = None,
        key: str | None = None,
        fmt: SerializerFormat | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Async variant of encrypt(); see encrypt_passes_async() for cancellation."""
        key = self.settings.resolve_key(key)
        passes = self.settings.resolve_passes(passes)
        buffer = await encrypt_passes_async(_to_bytes(value), key, passes, cancel_event)
        return format_envelope(passes, self.IV_LENGTH, buffer, fmt)

    async def encrypt_object_async(
        self,
        obj: Any,
        fmt: SerializerFormat = SerializerFormat.JSON,
        passes: int | None = None,
        key: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Async variant of encrypt_object()."""
        fmt = SerializerFormat.parse(fmt)
        return await self.encrypt_async(serialize(obj, fmt), passes, key, fmt, cancel_event)

    async def encrypt_external_async(
        self,
        value: Any,
        passes: int | None = None,
        key: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Async variant of encrypt_external()."""
        key = self.settings.resolve_key(key)
        passes = self.settings.resolve_passes(passes)
        buffer = await encrypt_passes_async(_to_bytes(value), key, passes, cancel_event)
        return to_base64(buffer)

    # ------------------------------------------------------------------
    # Decryption
    # ------------------------------------------------------------------

    @log_operation("decrypt")
    def decrypt(self, envelope: str, key: str | None = None) -> str:
        """
        Decrypt an envelope to its plaintext string.

        Args:
            envelope: Envelope text
            key: Secret key override

        Returns:
            Decrypted string

        Raises:
            InvalidEnvelopeError: If the envelope is malformed
            DecryptionError: Wrong key or corrupted ciphertext
        """
        parsed = self._open(envelope)
        key = self.settings.resolve_key(key)
        return _to_text(decrypt_passes(parsed.ciphertext, key, parsed.passes))

    def decrypt_object(
        self,
        envelope: str,
        cls: Type[T],
        key: str | None = None,
        default_format: SerializerFormat = SerializerFormat.JSON,
    ) -> T:
        """
        Decrypt an envelope and deserialize it into ``cls``.

        The envelope's format tag wins; untagged envelopes are read with
        ``default_format``.
        """
        parsed = self._open(envelope)
        text = self.decrypt(envelope, key)
        return deserialize(text, cls, parsed.format or SerializerFormat.parse(default_format))

    def decrypt_external(self, payload: str, key: str | None = None, passes: int | None = None) -> str:
        """Decrypt bare base64 produced by encrypt_external()."""
        key = self.settings.resolve_key(key)
        passes = self.settings.resolve_passes(passes)
        return _to_text(decrypt_passes(from_base64(payload), key, passes))

    @log_operation("decrypt")
    async def decrypt_async(
        self,
        envelope: str,
        key: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Async variant of decrypt()."""
        parsed = self._open(envelope)
        key = self.settings.resolve_key(key)
        buffer = await decrypt_passes_async(parsed.ciphertext, key, parsed.passes, cancel_event)
        return _to_text(buffer)

    async def decrypt_object_async(
        self,
        envelope: str,
        cls: Type[T],
        key: str | None = None,
        default_format: SerializerFormat = SerializerFormat.JSON,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """Async variant of decrypt_object()."""
        parsed = self._open(envelope)
        text = await self.decrypt_async(envelope, key, cancel_event)
        return deserialize(text, cls, parsed.format or SerializerFormat.parse(default_format))

    async def decrypt_external_async(
        self,
        payload: str,
        key: str | None = None,
        passes: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Async variant of decrypt_external()."""
        key = self.settings.resolve_key(key)
        passes = self.settings.resolve_passes(passes)
        buffer = await decrypt_passes_async(from_base64(payload), key, passes, cancel_event)
        return _to_text(buffer)

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def generate_index(self, value: Any) -> str | None:
        """Generate the index of a value; see fieldcipher.fingerprint."""
        return generate_index(value)

    def generate_object_index(self, obj: Any, fmt: SerializerFormat = SerializerFormat.JSON) -> str | None:
        """Generate the index of an object's serialized form."""
        return generate_object_index(obj, fmt)

    def index_matches(self, value: Any, index: str | None) -> bool:
        """Check a candidate value against an index."""
        return index_matches(value, index)

    def object_index_matches(
        self,
        obj: Any,
        index: str | None,
        fmt: SerializerFormat = SerializerFormat.JSON,
    ) -> bool:
        """Check a candidate object against an index."""
        return object_index_matches(obj, index, fmt)


@lru_cache
def get_service() -> CryptographyService:
    """Get the default service, configured from get_settings()."""
    return CryptographyService(get_settings())
