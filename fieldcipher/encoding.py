"""
Envelope encoding utilities.

An envelope is the text form of a completed encryption:

    {AES}$<passes>$<iv_length>$[<FORMAT>$]<base64 ciphertext>

The algorithm tag and format name match case-insensitively. FORMAT is
present only for serialized objects (JSON or XML). The codec does not
interpret the format; callers decide what an untagged envelope holds.
"""

import base64
import binascii
import re
from typing import NamedTuple, Optional

from fieldcipher.errors import InvalidEnvelopeError
from fieldcipher.serializer import SerializerFormat

ALGORITHM_TAG = "{AES}"
DELIMITER = "$"

_ENVELOPE_RE = re.compile(
    r"\{AES\}\$(?P<passes>[0-9]+)\$(?P<iv>[0-9]+)\$"
    r"(?:(?P<format>JSON|XML)\$)?"
    r"(?P<payload>[A-Za-z0-9+/=]*)",
    re.IGNORECASE,
)


class Envelope(NamedTuple):
    """Parsed envelope components."""
    passes: int
    iv_length: int
    format: Optional[SerializerFormat]
    payload: str

    @property
    def ciphertext(self) -> bytes:
        """Decode the base64 payload.

        Raises:
            InvalidEnvelopeError: If the payload is not valid base64
        """
        return from_base64(self.payload)

    @property
    def has_format(self) -> bool:
        return self.format is not None

    def __str__(self) -> str:
        segments = [ALGORITHM_TAG, str(self.passes), str(self.iv_length)]
        if self.format is not None:
            segments.append(self.format.value)
        segments.append(self.payload)
        return DELIMITER.join(segments)


def format_envelope(
    passes: int,
    iv_length: int,
    ciphertext: bytes,
    fmt: SerializerFormat | str | None = None,
) -> str:
    """
    Render an envelope.

    Args:
        passes: Number of encryption passes applied
        iv_length: IV length of the cipher (its block size)
        ciphertext: Final buffer of the pass pipeline
        fmt: Optional serialization format tag

    Returns:
        Envelope text
    """
    if passes < 0:
        raise ValueError(f"passes must be >= 0, got {passes}")
    fmt = SerializerFormat.parse(fmt) if fmt is not None else None
    return str(Envelope(passes, iv_length, fmt, to_base64(ciphertext)))


def parse_envelope(text: str, strict: bool = True) -> Envelope | None:
    """
    Parse envelope text.

    Args:
        text: Envelope text
        strict: Raise on mismatch instead of returning None

    Returns:
        Envelope, or None when the text does not match and ``strict`` is False

    Raises:
        InvalidEnvelopeError: If the text does not match and ``strict`` is True
    """
    match = _ENVELOPE_RE.fullmatch(text) if isinstance(text, str) else None
    if match is None:
        if strict:
            raise InvalidEnvelopeError("Invalid Hash")
        return None

    fmt = match.group("format")
    return Envelope(
        passes=int(match.group("passes")),
        iv_length=int(match.group("iv")),
        format=SerializerFormat.parse(fmt) if fmt else None,
        payload=match.group("payload"),
    )


def is_envelope(text: str) -> bool:
    """Check whether text is a well-formed envelope."""
    return parse_envelope(text, strict=False) is not None


def has_format_tag(text: str) -> bool:
    """
    Check whether an envelope carries a serialization format tag.

    Raises:
        InvalidEnvelopeError: If the text is not an envelope
    """
    return parse_envelope(text).has_format


def format_of(text: str) -> SerializerFormat:
    """
    Get the serialization format tag of an envelope.

    Raises:
        InvalidEnvelopeError: If the text is not an envelope or has no tag
    """
    envelope = parse_envelope(text)
    if envelope.format is None:
        raise InvalidEnvelopeError("Invalid Hash: Expected Complex, Got Simple")
    return envelope.format


def to_base64(data: bytes) -> str:
    """Encode bytes to standard base64 string."""
    return base64.b64encode(data).decode("ascii")


def from_base64(data: str) -> bytes:
    """Decode standard base64 string to bytes.

    Raises:
        InvalidEnvelopeError: If the string is not valid base64
    """
    try:
        return base64.b64decode(data.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise InvalidEnvelopeError("Invalid Hash: payload is not valid base64") from e
