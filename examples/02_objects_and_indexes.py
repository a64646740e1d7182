#!/usr/bin/env python3
"""
Objects and Indexes Example

Demonstrates serialized-object envelopes, typed wrappers and index matching.
"""

from decimal import Decimal

from pydantic import BaseModel

from fieldcipher import (
    CryptographyService,
    EncryptedObject,
    EncryptedValue,
    EncryptedValueWithIndex,
    SerializerFormat,
    Settings,
    ValueKind,
)


class Address(BaseModel):
    street: str
    city: str


class Customer(BaseModel):
    email: EncryptedValueWithIndex
    address: EncryptedObject[Address]


def main():
    service = CryptographyService(Settings(key="example-secret", passes=4))

    print("FieldCipher Objects and Indexes Example")
    print("=" * 50)

    # Example 1: Objects in JSON and XML
    print("\n1. Encrypting an object...")
    address = Address(street="1 Main St", city="Springfield")
    for fmt in (SerializerFormat.JSON, SerializerFormat.XML):
        envelope = service.encrypt_object(address, fmt)
        print(f"   {fmt.value}: {envelope[:40]}...")
        assert service.decrypt_object(envelope, Address) == address

    # Example 2: Typed values
    print("\n2. Typed values...")
    amount = EncryptedValue.from_decimal(Decimal("19.99"), service=service)
    reopened = EncryptedValue.from_envelope(amount.hash, ValueKind.DECIMAL, service=service)
    print(f"   Decimal: {reopened.get_value()!r}")

    # Example 3: Index matching without decryption
    print("\n3. Matching by index...")
    email = EncryptedValueWithIndex.from_string("jane@example.com", service)
    print(f"   Index: {email.index}")
    print(f"   jane@example.com matches: {email.matches('jane@example.com')}")
    print(f"   john@example.com matches: {email.matches('john@example.com')}")
    print("   Note: an index is reversible base64, not a hash")

    # Example 4: Pydantic fields (uses the SS_CRYPTO_* defaults)
    print("\n4. Pydantic model fields...")
    try:
        customer = Customer(email="jane@example.com", address=address)
        dumped = customer.model_dump()
        print(f"   Stored email: {dumped['email']['hash'][:40]}... index={dumped['email']['index']}")
        restored = Customer.model_validate(dumped)
        print(f"   Restored city: {restored.address.value.city}")
    except Exception as e:
        print(f"   Skipped ({e}); set SS_CRYPTO_KEY to run this part")

    print("\n" + "=" * 50)
    print("All examples completed successfully!")


if __name__ == "__main__":
    main()
