"""
Multi-pass encryption pipeline.

Each pass wraps the whole current buffer in a new cipher layer:

    buffer(n+1) = IV(n) || AES-256-CBC(key, IV(n), buffer(n))

so the buffer after N passes is N layers deep, outermost layer first.
Decryption peels exactly one layer per pass, walking the passes in the
same forward order: the outermost layer's IV is always the first
16 bytes of the current buffer.

Every pass uses the same derived key; only the IV differs.
"""

import asyncio

from fieldcipher.ciphers import AESCBCCipher
from fieldcipher.errors import OperationCancelledError
from fieldcipher.keys import KeyDerivation
from fieldcipher.logging import get_logger

logger = get_logger(__name__)


def _check_passes(passes: int) -> None:
    if passes < 0:
        raise ValueError(f"passes must be >= 0, got {passes}")


def _check_cancelled(cancel_event: asyncio.Event | None, completed: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.debug("Pass pipeline cancelled", completed_passes=completed)
        raise OperationCancelledError(f"Operation cancelled after {completed} passes")


def encrypt_passes(plaintext: bytes, key: str | bytes, passes: int) -> bytes:
    """
    Encrypt a buffer with ``passes`` independent layers.

    Args:
        plaintext: Buffer to encrypt
        key: Passphrase; the AES key is derived with KeyDerivation.derive()
        passes: Number of layers (0 returns the buffer unchanged)

    Returns:
        The final buffer, ``IV || ciphertext`` of the last pass

    Raises:
        CryptoKeyError: If the passphrase is empty
        EngineError: If the cipher cannot be constructed
    """
    _check_passes(passes)
    cipher = AESCBCCipher(KeyDerivation.derive(key))

    buffer = plaintext
    for _ in range(passes):
        buffer = cipher.encrypt(buffer)

    logger.debug("Encrypted buffer", passes=passes, input_length=len(plaintext), output_length=len(buffer))
    return buffer


def decrypt_passes(buffer: bytes, key: str | bytes, passes: int) -> bytes:
    """
    Remove ``passes`` layers from a buffer produced by encrypt_passes().

    Args:
        buffer: Encrypted buffer
        key: Passphrase used during encryption
        passes: Number of layers to remove

    Returns:
        The innermost plaintext buffer

    Raises:
        DecryptionError: Wrong key, corrupted or truncated buffer
    """
    _check_passes(passes)
    cipher = AESCBCCipher(KeyDerivation.derive(key))

    result = buffer
    for _ in range(passes):
        result = cipher.decrypt(result)

    logger.debug("Decrypted buffer", passes=passes, input_length=len(buffer), output_length=len(result))
    return result


async def encrypt_passes_async(
    plaintext: bytes,
    key: str | bytes,
    passes: int,
    cancel_event: asyncio.Event | None = None,
) -> bytes:
    """
    Async variant of encrypt_passes().

    Yields to the event loop between passes. If ``cancel_event`` is set
    before a pass starts, raises OperationCancelledError; no partial
    buffer is ever returned.
    """
    _check_passes(passes)
    cipher = AESCBCCipher(KeyDerivation.derive(key))

    buffer = plaintext
    for completed in range(passes):
        _check_cancelled(cancel_event, completed)
        buffer = cipher.encrypt(buffer)
        await asyncio.sleep(0)
    _check_cancelled(cancel_event, passes)

    logger.debug("Encrypted buffer", passes=passes, input_length=len(plaintext), output_length=len(buffer))
    return buffer


async def decrypt_passes_async(
    buffer: bytes,
    key: str | bytes,
    passes: int,
    cancel_event: asyncio.Event | None = None,
) -> bytes:
    """Async variant of decrypt_passes(); see encrypt_passes_async()."""
    _check_passes(passes)
    cipher = AESCBCCipher(KeyDerivation.derive(key))

    result = buffer
    for completed in range(passes):
        _check_cancelled(cancel_event, completed)
        result = cipher.decrypt(result)
        await asyncio.sleep(0)
    _check_cancelled(cancel_event, passes)

    logger.debug("Decrypted buffer", passes=passes, input_length=len(buffer), output_length=len(result))
    return result
