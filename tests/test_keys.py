"""Tests for key derivation."""

import hashlib

import pytest

from fieldcipher.errors import CryptoKeyError
from fieldcipher.keys import KeyDerivation


class TestDerive:
    """Tests for KeyDerivation.derive()."""

    def test_key_is_truncated_sha512(self):
        """Key is the first 32 bytes of SHA-512 of the UTF-8 secret."""
        expected = hashlib.sha512("test-key".encode("utf-8")).digest()[:32]
        assert KeyDerivation.derive("test-key") == expected

    def test_key_size(self):
        """Derived key is 32 bytes."""
        assert len(KeyDerivation.derive("x")) == KeyDerivation.KEY_SIZE == 32

    def test_deterministic(self):
        """Same secret yields the same key."""
        assert KeyDerivation.derive("secret") == KeyDerivation.derive("secret")

    def test_different_secrets(self):
        """Different secrets yield different keys."""
        assert KeyDerivation.derive("secret-a") != KeyDerivation.derive("secret-b")

    def test_bytes_and_str_agree(self):
        """A bytes secret is used as its UTF-8 form."""
        assert KeyDerivation.derive("pässword") == KeyDerivation.derive("pässword".encode("utf-8"))

    @pytest.mark.parametrize("secret", ["", b"", None])
    def test_empty_secret_rejected(self, secret):
        """Empty secret raises CryptoKeyError."""
        with pytest.raises(CryptoKeyError):
            KeyDerivation.derive(secret)
