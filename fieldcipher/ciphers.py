"""
Cipher implementation for FieldCipher.

Provides one AES-256-CBC pass with PKCS7 padding. A pass produces a
cipher layer laid out as ``IV || ciphertext`` so that every layer carries
its own initialization vector at its leading boundary.
"""

import os

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from fieldcipher.errors import DecryptionError, EngineError


class AESCBCCipher:
    """
    AES-256-CBC with PKCS7 padding.

    Unauthenticated: a wrong key or a tampered layer is only detected when
    the padding fails to validate.

    Example:
        cipher = AESCBCCipher(key)
        layer = cipher.encrypt(b"secret")
        plaintext = cipher.decrypt(layer)
    """

    BLOCK_SIZE = 16  # 128 bits
    IV_SIZE = BLOCK_SIZE
    KEY_SIZE = 32    # 256 bits

    def __init__(self, key: bytes):
        """
        Initialize cipher with key.

        Args:
            key: 32-byte (256-bit) encryption key

        Raises:
            EngineError: If key is invalid size or AES is unavailable
        """
        if len(key) != self.KEY_SIZE:
            raise EngineError(f"Key must be {self.KEY_SIZE} bytes, got {len(key)}")
        try:
            self._algorithm = algorithms.AES(key)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise EngineError(f"Unable to instantiate AES Cryptographic Engine: {e}") from e

    def _cipher(self, iv: bytes) -> Cipher:
        try:
            return Cipher(self._algorithm, modes.CBC(iv))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise EngineError(f"Unable to instantiate AES Cryptographic Engine: {e}") from e

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt one layer.

        Args:
            plaintext: Data to encrypt (can be empty)

        Returns:
            Fresh random IV followed by the padded ciphertext
        """
        iv = os.urandom(self.IV_SIZE)
        padder = padding.PKCS7(self.BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = self._cipher(iv).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, layer: bytes) -> bytes:
        """
        Decrypt one layer.

        Args:
            layer: IV followed by ciphertext, as produced by encrypt()

        Returns:
            Unpadded plaintext

        Raises:
            DecryptionError: If the layer is malformed or padding is invalid
        """
        ciphertext = layer[self.IV_SIZE:]
        if len(ciphertext) == 0 or len(ciphertext) % self.BLOCK_SIZE:
            raise DecryptionError()

        iv = layer[: self.IV_SIZE]
        decryptor = self._cipher(iv).decryptor()
        unpadder = padding.PKCS7(self.BLOCK_SIZE * 8).unpadder()
        try:
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            raise DecryptionError() from None
