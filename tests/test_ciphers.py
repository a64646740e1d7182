"""Tests for the AES-256-CBC cipher layer."""

import os

import pytest

from fieldcipher.ciphers import AESCBCCipher
from fieldcipher.errors import DecryptionError, EngineError
from fieldcipher.keys import KeyDerivation


@pytest.fixture
def cipher():
    return AESCBCCipher(KeyDerivation.derive("test-key"))


class TestAESCBCCipher:
    """Tests for a single cipher layer."""

    def test_roundtrip(self, cipher):
        """Encrypt then decrypt returns original plaintext."""
        assert cipher.decrypt(cipher.encrypt(b"hello world")) == b"hello world"

    def test_roundtrip_empty(self, cipher):
        """Empty plaintext pads to one full block."""
        layer = cipher.encrypt(b"")
        assert len(layer) == 32
        assert cipher.decrypt(layer) == b""

    def test_layer_layout(self, cipher):
        """Layer is a 16-byte IV followed by block-aligned ciphertext."""
        layer = cipher.encrypt(b"x" * 20)
        assert len(layer) == 16 + 32
        assert (len(layer) - AESCBCCipher.IV_SIZE) % AESCBCCipher.BLOCK_SIZE == 0

    def test_full_block_gets_padding_block(self, cipher):
        """A block-aligned plaintext gains a whole padding block."""
        assert len(cipher.encrypt(b"x" * 16)) == 16 + 32

    def test_fresh_iv_per_call(self, cipher):
        """Each call uses a new IV."""
        a = cipher.encrypt(b"same")
        b = cipher.encrypt(b"same")
        assert a[:16] != b[:16]
        assert a != b

    def test_large_data(self, cipher):
        plaintext = os.urandom(100_000)
        assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext

    def test_corrupted_last_block(self, cipher):
        """Corrupted final block fails padding validation or yields garbage, never the plaintext."""
        layer = bytearray(cipher.encrypt(b"secret"))
        layer[-1] ^= 0xFF
        try:
            assert cipher.decrypt(bytes(layer)) != b"secret"
        except DecryptionError:
            pass

    def test_truncated_layer(self, cipher):
        """Non block-aligned ciphertext raises DecryptionError."""
        layer = cipher.encrypt(b"secret")
        with pytest.raises(DecryptionError):
            cipher.decrypt(layer[:-1])

    def test_iv_only(self, cipher):
        """A layer with no ciphertext raises DecryptionError."""
        with pytest.raises(DecryptionError):
            cipher.decrypt(os.urandom(16))

    def test_generic_error_message(self, cipher):
        """Decryption failures do not say which check failed."""
        with pytest.raises(DecryptionError) as exc_info:
            cipher.decrypt(b"\x00" * 15)
        assert "padding" not in str(exc_info.value).lower()

    @pytest.mark.parametrize("size", [0, 16, 31, 64])
    def test_invalid_key_size(self, size):
        """Wrong key size raises EngineError."""
        with pytest.raises(EngineError, match="32 bytes"):
            AESCBCCipher(b"\x00" * size)
