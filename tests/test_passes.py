"""Tests for the multi-pass pipeline."""

import asyncio

import pytest

from fieldcipher.ciphers import AESCBCCipher
from fieldcipher.errors import CryptoKeyError, DecryptionError, OperationCancelledError
from fieldcipher.keys import KeyDerivation
from fieldcipher.passes import (
    decrypt_passes,
    decrypt_passes_async,
    encrypt_passes,
    encrypt_passes_async,
)

KEY = "test-key"


class TestEncryptPasses:
    """Tests for encrypt_passes()."""

    @pytest.mark.parametrize("passes", [0, 1, 2, 5, 16, 32])
    def test_roundtrip(self, passes):
        """Decrypting with the same key and pass count restores the buffer."""
        plaintext = "round trip ünïcødé 🔐".encode("utf-8")
        buffer = encrypt_passes(plaintext, KEY, passes)
        assert decrypt_passes(buffer, KEY, passes) == plaintext

    def test_zero_passes_is_identity(self):
        """passes=0 returns the buffer unchanged."""
        assert encrypt_passes(b"hello", KEY, 0) == b"hello"
        assert decrypt_passes(b"hello", KEY, 0) == b"hello"

    def test_layer_growth(self):
        """Each pass adds an IV and pads to the next block boundary."""
        # 5 -> 16 + 16 -> 16 + 48
        assert len(encrypt_passes(b"value", KEY, 1)) == 32
        assert len(encrypt_passes(b"value", KEY, 2)) == 64

    def test_layers_nest_outermost_first(self):
        """Peeling layers one at a time with the cipher reproduces the plaintext."""
        buffer = encrypt_passes(b"nested", KEY, 3)
        cipher = AESCBCCipher(KeyDerivation.derive(KEY))

        ivs = []
        for _ in range(3):
            ivs.append(buffer[:16])
            buffer = cipher.decrypt(buffer)

        assert buffer == b"nested"
        assert len(set(ivs)) == 3

    def test_every_call_is_randomized(self):
        """Same input and key produce different buffers."""
        assert encrypt_passes(b"same", KEY, 2) != encrypt_passes(b"same", KEY, 2)

    def test_negative_passes(self):
        with pytest.raises(ValueError):
            encrypt_passes(b"x", KEY, -1)

    def test_empty_key(self):
        with pytest.raises(CryptoKeyError):
            encrypt_passes(b"x", "", 1)


class TestDecryptPasses:
    """Tests for decrypt_passes()."""

    @pytest.mark.parametrize("passes", [2, 3, 16])
    def test_wrong_key(self, passes):
        """A different key fails instead of returning plaintext."""
        buffer = encrypt_passes(b"value", KEY, passes)
        with pytest.raises(DecryptionError):
            decrypt_passes(buffer, "other-key", passes)

    def test_too_many_passes(self):
        """Peeling more layers than were applied fails."""
        buffer = encrypt_passes(b"value", KEY, 2)
        with pytest.raises(DecryptionError):
            decrypt_passes(buffer, KEY, 3)

    def test_truncated_buffer(self):
        buffer = encrypt_passes(b"value", KEY, 2)
        with pytest.raises(DecryptionError):
            decrypt_passes(buffer[:-3], KEY, 2)


class TestAsyncPasses:
    """Tests for the async pipeline."""

    @pytest.mark.asyncio
    async def test_roundtrip(self):
        buffer = await encrypt_passes_async(b"async value", KEY, 4)
        assert await decrypt_passes_async(buffer, KEY, 4) == b"async value"

    @pytest.mark.asyncio
    async def test_interoperates_with_sync(self):
        """Async output decrypts with the sync path and vice versa."""
        buffer = await encrypt_passes_async(b"mixed", KEY, 3)
        assert decrypt_passes(buffer, KEY, 3) == b"mixed"
        buffer = encrypt_passes(b"mixed", KEY, 3)
        assert await decrypt_passes_async(buffer, KEY, 3) == b"mixed"

    @pytest.mark.asyncio
    async def test_bit_identical_to_sync(self, fixed_ivs):
        """With the same IVs, async and sync produce the same bytes."""
        fixed_ivs()
        sync_buffer = encrypt_passes(b"identical", KEY, 5)
        fixed_ivs()
        async_buffer = await encrypt_passes_async(b"identical", KEY, 5)
        assert sync_buffer == async_buffer

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self):
        """A set cancel event aborts without returning a buffer."""
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(OperationCancelledError):
            await encrypt_passes_async(b"x", KEY, 4, cancel_event=cancel)

    @pytest.mark.asyncio
    async def test_cancelled_between_passes(self):
        """Setting the event mid-pipeline aborts at the next pass boundary."""
        cancel = asyncio.Event()
        buffer = encrypt_passes(b"x", KEY, 32)

        async def trip():
            await asyncio.sleep(0)
            cancel.set()

        tripper = asyncio.ensure_future(trip())
        with pytest.raises(OperationCancelledError):
            await decrypt_passes_async(buffer, KEY, 32, cancel_event=cancel)
        await tripper

    @pytest.mark.asyncio
    async def test_zero_passes_not_cancelled(self):
        assert await encrypt_passes_async(b"x", KEY, 0, cancel_event=asyncio.Event()) == b"x"

    @pytest.mark.asyncio
    async def test_task_cancellation(self):
        """Cancelling the task stops the pipeline with CancelledError."""
        task = asyncio.ensure_future(encrypt_passes_async(b"x" * 1000, KEY, 32))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
