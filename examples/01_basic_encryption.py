#!/usr/bin/env python3
"""
Basic Encryption Example

Demonstrates encrypting values into envelopes and back with FieldCipher.
"""

from fieldcipher import CryptographyService, Settings, parse_envelope


def main():
    # Explicit settings; without them SS_CRYPTO_KEY / SS_CRYPTO_PASSES are used
    service = CryptographyService(Settings(key="example-secret", passes=4))

    print("FieldCipher Basic Encryption Example")
    print("=" * 50)

    # Example 1: Encrypt a string
    print("\n1. Encrypting a string...")
    envelope = service.encrypt("4111-1111-1111-1111")
    print(f"   Envelope: {envelope[:50]}... ({len(envelope)} chars)")

    # Example 2: Decrypt it
    print("\n2. Decrypting the envelope...")
    decrypted = service.decrypt(envelope)
    print(f"   Decrypted: {decrypted}")
    assert decrypted == "4111-1111-1111-1111", "Decryption failed!"
    print("   Verification: PASSED")

    # Example 3: The envelope describes itself
    print("\n3. Inspecting the envelope...")
    parsed = parse_envelope(envelope)
    print(f"   Passes:     {parsed.passes}")
    print(f"   IV length:  {parsed.iv_length}")
    print(f"   Ciphertext: {len(parsed.ciphertext)} bytes")

    # Example 4: Pass count per call
    print("\n4. Varying the pass count...")
    for passes in (0, 1, 8):
        enc = service.encrypt("hello", passes=passes)
        print(f"   passes={passes}: {len(parse_envelope(enc).ciphertext)} bytes")
        assert service.decrypt(enc) == "hello"

    # Example 5: Per-call key
    print("\n5. Using a per-call key...")
    enc = service.encrypt("tenant data", key="tenant-42-secret")
    print(f"   Decrypted: {service.decrypt(enc, key='tenant-42-secret')}")

    print("\n" + "=" * 50)
    print("All examples completed successfully!")


if __name__ == "__main__":
    main()
