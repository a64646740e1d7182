"""
Exception classes for FieldCipher.
"""


class CryptographyError(Exception):
    """Base exception for FieldCipher errors."""

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidEnvelopeError(CryptographyError):
    """Invalid Hash: value is not a well-formed envelope."""
    pass


class EngineError(CryptographyError):
    """Unable to instantiate AES Cryptographic Engine."""
    pass


class CryptoKeyError(CryptographyError):
    """No secret key supplied and no default key configured."""
    pass


class DecryptionError(CryptographyError):
    """Decryption failed (wrong key or corrupted data)."""
    pass


class SerializationError(CryptographyError):
    """Object could not be serialized or deserialized."""
    pass


class OperationCancelledError(CryptographyError):
    """Operation cancelled before completion."""
    pass
