#!/usr/bin/env python3
"""
Error Handling Example

Demonstrates the exception hierarchy raised by FieldCipher.
"""

import asyncio

from fieldcipher import (
    CryptographyError,
    CryptographyService,
    CryptoKeyError,
    DecryptionError,
    InvalidEnvelopeError,
    OperationCancelledError,
    Settings,
)


def main():
    service = CryptographyService(Settings(key="example-secret", passes=2))

    print("FieldCipher Error Handling Example")
    print("=" * 50)

    # Example 1: Basic try/except pattern
    print("\n1. Basic error handling...")

    def safe_decrypt(envelope: str) -> str | None:
        """Decrypt, returning None on any library error."""
        try:
            return service.decrypt(envelope)
        except CryptographyError as e:
            print(f"   Decryption failed: {e}")
            return None

    result = safe_decrypt("not-an-envelope")
    print(f"   Result: {'Success' if result else 'Failed'}")

    # Example 2: Specific exceptions
    print("\n2. Handling specific exceptions...")
    envelope = service.encrypt("value")

    try:
        service.decrypt(envelope, key="wrong-secret")
    except DecryptionError as e:
        # Wrong key or corrupted ciphertext
        print(f"   Decryption error: {e}")

    try:
        service.decrypt("{AES}$2$16$not*base64")
    except InvalidEnvelopeError as e:
        # Malformed envelope text
        print(f"   Invalid envelope: {e}")

    try:
        CryptographyService(Settings(key=None)).encrypt("value")
    except CryptoKeyError as e:
        # No key passed and none configured
        print(f"   Key error: {e}")

    # Example 3: Cancelling async work
    print("\n3. Cancelling an async operation...")

    async def cancelled():
        cancel = asyncio.Event()
        cancel.set()
        try:
            await service.encrypt_async("value", passes=64, cancel_event=cancel)
        except OperationCancelledError as e:
            print(f"   Cancelled: {e}")

    asyncio.run(cancelled())

    print("\n" + "=" * 50)
    print("All examples completed successfully!")


if __name__ == "__main__":
    main()
