"""
Index generation for blind equality matching.

An index is the base64 encoding of the UTF-8 bytes of a value's string
form. It is stored next to an envelope so a candidate plaintext can be
matched without decrypting.

The index is a reversible encoding, not a one-way hash: anyone holding
the index can recover the plaintext. Envelopes written alongside an index
offer no confidentiality for the indexed value.
"""

from typing import Any

from fieldcipher.encoding import to_base64
from fieldcipher.serializer import SerializerFormat, serialize


def generate_index(value: Any) -> str | None:
    """
    Generate the index of a value.

    Args:
        value: Any value; its ``str()`` form is indexed

    Returns:
        Index string, or None when ``value`` is None
    """
    if value is None:
        return None
    return to_base64(str(value).encode("utf-8"))


def generate_object_index(obj: Any, fmt: SerializerFormat = SerializerFormat.JSON) -> str | None:
    """Generate the index of an object's serialized form."""
    if obj is None:
        return None
    return generate_index(serialize(obj, fmt))


def index_matches(value: Any, index: str | None) -> bool:
    """Check whether a candidate value produces the given index."""
    return generate_index(value) == index


def object_index_matches(
    obj: Any,
    index: str | None,
    fmt: SerializerFormat = SerializerFormat.JSON,
) -> bool:
    """Check whether a candidate object produces the given index."""
    return generate_object_index(obj, fmt) == index
