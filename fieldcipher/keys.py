"""
Key derivation utilities.
"""
from __future__ import annotations

from cryptography.hazmat.primitives import hashes

from fieldcipher.errors import CryptoKeyError


class KeyDerivation:
    """
    Passphrase to AES-256 key derivation.

    The derived key is the first 32 bytes of the SHA-512 digest of the
    UTF-8 encoded passphrase. There is no salt and no iteration count, so
    the same passphrase always yields the same key; envelopes written by
    any process sharing the passphrase can be read by any other.

    Example:
        key = KeyDerivation.derive("my-secret")
        assert len(key) == KeyDerivation.KEY_SIZE
    """

    KEY_SIZE = 32  # 256 bits

    @staticmethod
    def derive(secret: str | bytes) -> bytes:
        """
        Derive the symmetric key for a passphrase.

        Args:
            secret: Passphrase (str is UTF-8 encoded, bytes are used as-is)

        Returns:
            32-byte key

        Raises:
            CryptoKeyError: If the passphrase is empty
        """
        if secret is None or len(secret) == 0:
            raise CryptoKeyError("Secret key must not be empty")
        if isinstance(secret, str):
            secret = secret.encode("utf-8")

        digest = hashes.Hash(hashes.SHA512())
        digest.update(secret)
        return digest.finalize()[: KeyDerivation.KEY_SIZE]
