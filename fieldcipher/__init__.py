"""
FieldCipher - Self-describing encrypted envelopes for individual values.

Usage:
    from fieldcipher import CryptographyService, Settings

    service = CryptographyService(Settings(key="my-secret"))

    envelope = service.encrypt("jane@example.com")
    # '{AES}$16$16$...'
    service.decrypt(envelope)

    # Blind equality matching
    index = service.generate_index("jane@example.com")
    service.index_matches("jane@example.com", index)   # True

Configuration:
    SS_CRYPTO_KEY     default secret key
    SS_CRYPTO_PASSES  default number of encryption passes (16)

Package Layout:
    keys        - passphrase to AES-256 key derivation
    ciphers     - one AES-256-CBC layer
    passes      - multi-pass pipeline (sync and async)
    encoding    - envelope format/parse
    fingerprint - value indexes
    service     - encrypt/decrypt entry points
    values      - typed wrappers and Pydantic glue
"""

from fieldcipher.config import Settings, get_settings
from fieldcipher.errors import (
    CryptographyError,
    InvalidEnvelopeError,
    EngineError,
    CryptoKeyError,
    DecryptionError,
    SerializationError,
    OperationCancelledError,
)
# Deprecated alias, use CryptoKeyError instead
KeyError = CryptoKeyError
from fieldcipher.keys import KeyDerivation
from fieldcipher.ciphers import AESCBCCipher
from fieldcipher.passes import (
    encrypt_passes,
    decrypt_passes,
    encrypt_passes_async,
    decrypt_passes_async,
)
from fieldcipher.encoding import (
    Envelope,
    format_envelope,
    parse_envelope,
    is_envelope,
    has_format_tag,
    format_of,
)
from fieldcipher.fingerprint import (
    generate_index,
    index_matches,
)
from fieldcipher.serializer import SerializerFormat
from fieldcipher.service import CryptographyService, get_service
from fieldcipher.values import (
    ValueKind,
    EncryptedValue,
    EncryptedValueWithIndex,
    EncryptedObject,
    EncryptedObjectWithIndex,
)

__version__ = "1.0.0"

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "CryptographyError",
    "InvalidEnvelopeError",
    "EngineError",
    "CryptoKeyError",
    "KeyError",  # Deprecated alias for CryptoKeyError
    "DecryptionError",
    "SerializationError",
    "OperationCancelledError",
    # Primitives
    "KeyDerivation",
    "AESCBCCipher",
    "encrypt_passes",
    "decrypt_passes",
    "encrypt_passes_async",
    "decrypt_passes_async",
    # Envelopes
    "Envelope",
    "format_envelope",
    "parse_envelope",
    "is_envelope",
    "has_format_tag",
    "format_of",
    # Indexes
    "generate_index",
    "index_matches",
    # Service
    "SerializerFormat",
    "CryptographyService",
    "get_service",
    # Wrappers
    "ValueKind",
    "EncryptedValue",
    "EncryptedValueWithIndex",
    "EncryptedObject",
    "EncryptedObjectWithIndex",
]
