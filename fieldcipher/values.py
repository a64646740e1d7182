"""
Encrypted value wrappers.

Wrap a typed value together with its envelope. Construction from a
plaintext encrypts; construction from an envelope decrypts. Every
factory funnels into one path: turn the value into text, then encrypt.

Usage:
    from fieldcipher.values import EncryptedValue, EncryptedValueWithIndex

    amount = EncryptedValue.from_decimal(Decimal("19.99"))
    str(amount)              # '{AES}$16$16$...'
    amount.get_value()       # Decimal('19.99')

    email = EncryptedValueWithIndex.from_string("jane@example.com")
    email.matches("jane@example.com")   # True, without decrypting

Usage with Pydantic:
    class Customer(BaseModel):
        email: EncryptedValueWithIndex
        profile: EncryptedObject[Profile]

    Customer(email="jane@example.com", profile=Profile(...))
    # model_dump() renders profile as its envelope string and email as
    # {"hash": envelope, "index": index}; validating a dump decrypts them
    # again and keeps the stored index.
"""

import asyncio
import xml.etree.ElementTree as ET
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Generic, Mapping, Optional, Type, TypeVar, get_args

from pydantic import GetCoreSchemaHandler, TypeAdapter
from pydantic_core import CoreSchema, core_schema

from fieldcipher.encoding import is_envelope
from fieldcipher.errors import SerializationError
from fieldcipher.fingerprint import (
    generate_index,
    generate_object_index,
    index_matches,
    object_index_matches,
)
from fieldcipher.serializer import SerializerFormat
from fieldcipher.service import CryptographyService, get_service

T = TypeVar("T")
V = TypeVar("V", bound="EncryptedValue")

_XML_ROOT = "encryptedValue"


class ValueKind(str, Enum):
    """Primitive kinds an EncryptedValue can carry."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    ENUM = "enum"


def to_text(value: Any, kind: ValueKind) -> Optional[str]:
    """Render a value in the canonical text form for its kind."""
    if value is None:
        return None
    if kind is ValueKind.DATETIME:
        return value.isoformat()
    if kind is ValueKind.ENUM:
        return value.name
    return str(value)


def from_text(text: Optional[str], kind: ValueKind, enum_type: Optional[Type[Enum]] = None) -> Any:
    """
    Parse canonical text back into a value of the given kind.

    Empty text is None for every kind except STRING.

    Raises:
        SerializationError: If the text is not a valid value of the kind
    """
    if kind is ValueKind.STRING:
        return text
    if not text:
        return None
    try:
        if kind is ValueKind.BOOL:
            lowered = text.strip().lower()
            if lowered not in ("true", "false"):
                raise ValueError(f"not a boolean: {text!r}")
            return lowered == "true"
        if kind is ValueKind.INT:
            return int(text)
        if kind is ValueKind.FLOAT:
            return float(text)
        if kind is ValueKind.DECIMAL:
            return Decimal(text)
        if kind is ValueKind.DATETIME:
            return datetime.fromisoformat(text)
        if kind is ValueKind.ENUM:
            if enum_type is None:
                raise ValueError("enum_type is required for ENUM values")
            return enum_type[text]
    except (ValueError, KeyError, InvalidOperation) as e:
        raise SerializationError(f"Cannot read {kind.value} value: {e}") from e
    raise SerializationError(f"Unknown value kind: {kind}")


def kind_of(value: Any) -> ValueKind:
    """Pick the ValueKind for a Python value."""
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, Enum):
        return ValueKind.ENUM
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    return ValueKind.STRING


class EncryptedValue:
    """
    A primitive value and its envelope.

    The envelope is available as ``hash`` and as ``str(instance)``.
    """

    def __init__(
        self,
        hash: str,
        value: Any = None,
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
    ):
        self.hash = hash
        self.kind = kind
        self.enum_type = enum_type
        self._value = value

    # Factories -------------------------------------------------------

    @classmethod
    def _seal(
        cls: Type[V],
        value: Any,
        kind: ValueKind,
        service: Optional[CryptographyService] = None,
        enum_type: Optional[Type[Enum]] = None,
    ) -> V:
        service = service or get_service()
        if enum_type is None and isinstance(value, Enum):
            enum_type = type(value)
        return cls(service.encrypt(to_text(value, kind)), value, kind, enum_type)

    @classmethod
    def from_string(cls: Type[V], value_or_envelope: Optional[str], service: Optional[CryptographyService] = None) -> V:
        """Decrypt ``value_or_envelope`` if it is an envelope, otherwise encrypt it."""
        if value_or_envelope is not None and is_envelope(value_or_envelope):
            return cls.from_envelope(value_or_envelope, ValueKind.STRING, service=service)
        return cls._seal(value_or_envelope, ValueKind.STRING, service)

    @classmethod
    def from_bool(cls: Type[V], value: Optional[bool], service: Optional[CryptographyService] = None) -> V:
        return cls._seal(value, ValueKind.BOOL, service)

    @classmethod
    def from_int(cls: Type[V], value: Optional[int], service: Optional[CryptographyService] = None) -> V:
        return cls._seal(value, ValueKind.INT, service)

    @classmethod
    def from_float(cls: Type[V], value: Optional[float], service: Optional[CryptographyService] = None) -> V:
        return cls._seal(value, ValueKind.FLOAT, service)

    @classmethod
    def from_decimal(cls: Type[V], value: Optional[Decimal], service: Optional[CryptographyService] = None) -> V:
        return cls._seal(value, ValueKind.DECIMAL, service)

    @classmethod
    def from_datetime(cls: Type[V], value: Optional[datetime], service: Optional[CryptographyService] = None) -> V:
        return cls._seal(value, ValueKind.DATETIME, service)

    @classmethod
    def from_enum(
        cls: Type[V],
        value: Optional[Enum],
        enum_type: Optional[Type[Enum]] = None,
        service: Optional[CryptographyService] = None,
    ) -> V:
        return cls._seal(value, ValueKind.ENUM, service, enum_type)

    @classmethod
    def from_value(cls: Type[V], value: Any, service: Optional[CryptographyService] = None) -> V:
        """Encrypt any supported primitive, choosing the kind from its type."""
        if isinstance(value, str) and not isinstance(value, Enum):
            return cls.from_string(value, service)
        return cls._seal(value, kind_of(value), service)

    @classmethod
    def from_envelope(
        cls: Type[V],
        envelope: str,
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
        service: Optional[CryptographyService] = None,
    ) -> V:
        """Decrypt an envelope into a value of the given kind."""
        service = service or get_service()
        text = service.decrypt(envelope)
        return cls(envelope, from_text(text, kind, enum_type), kind, enum_type)

    @classmethod
    async def create_async(
        cls: Type[V],
        value: Any,
        kind: Optional[ValueKind] = None,
        service: Optional[CryptographyService] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> V:
        """Async counterpart of the from_* factories."""
        service = service or get_service()
        kind = kind or kind_of(value)
        enum_type = type(value) if isinstance(value, Enum) else None
        envelope = await service.encrypt_async(to_text(value, kind), cancel_event=cancel_event)
        return cls(envelope, value, kind, enum_type)

    @classmethod
    async def open_async(
        cls: Type[V],
        envelope: str,
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
        service: Optional[CryptographyService] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> V:
        """Async counterpart of from_envelope()."""
        service = service or get_service()
        text = await service.decrypt_async(envelope, cancel_event=cancel_event)
        return cls(envelope, from_text(text, kind, enum_type), kind, enum_type)

    # Accessors -------------------------------------------------------

    def get_value(self) -> Any:
        """Return the decrypted value."""
        return self._value

    @property
    def value(self) -> Any:
        return self._value

    @property
    def text(self) -> Optional[str]:
        """The canonical text form that was (or would be) encrypted."""
        return to_text(self._value, self.kind)

    def __str__(self) -> str:
        return self.hash

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, hash={self.hash[:24]}...)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncryptedValue):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)

    # Pydantic --------------------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept plaintext, primitives or envelopes; serialize as the envelope."""

        def validate(value: Any) -> "EncryptedValue":
            if isinstance(value, cls):
                return value
            return cls.from_value(value)

        return core_schema.no_info_plain_validator_function(
            validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str,
                info_arg=False,
                return_schema=core_schema.str_schema(),
            ),
        )


class EncryptedValueWithIndex(EncryptedValue):
    """
    An EncryptedValue that also carries an index of its plaintext.

    The index allows equality matching without decryption; see
    fieldcipher.fingerprint for what an index does and does not protect.

    The index is taken from the text that was encrypted. A None value is
    encrypted as "", so it indexes as "" no matter whether the wrapper was
    sealed from None or reopened from its envelope.

    Stored form (what Pydantic dumps and to_dict() returns):
        {"hash": "{AES}$16$16$...", "index": "amFuZUBleGFtcGxlLmNvbQ=="}
    """

    def __init__(
        self,
        hash: str,
        value: Any = None,
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
        index: Optional[str] = None,
    ):
        super().__init__(hash, value, kind, enum_type)
        self.index = index if index is not None else generate_index(self.text or "")

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
        service: Optional[CryptographyService] = None,
    ) -> "EncryptedValueWithIndex":
        """
        Rebuild a wrapper from its stored ``{"hash", "index"}`` form.

        The stored index is kept as-is.

        Raises:
            SerializationError: If ``hash`` is missing
        """
        envelope = data.get("hash")
        if not isinstance(envelope, str):
            raise SerializationError("Stored value has no 'hash' field")
        service = service or get_service()
        text = service.decrypt(envelope)
        return cls(envelope, from_text(text, kind, enum_type), kind, enum_type, index=data.get("index"))

    @classmethod
    def from_xml(
        cls,
        text: str,
        kind: ValueKind = ValueKind.STRING,
        enum_type: Optional[Type[Enum]] = None,
        service: Optional[CryptographyService] = None,
    ) -> "EncryptedValueWithIndex":
        """Rebuild a wrapper from the output of to_xml()."""
        try:
            element = ET.fromstring(text)
        except ET.ParseError as e:
            raise SerializationError(f"Cannot read encryptedValue XML: {e}") from e
        if element.tag != _XML_ROOT:
            raise SerializationError(f"Expected <{_XML_ROOT}>, got <{element.tag}>")
        return cls.from_dict(
            {"hash": (element.text or "").strip(), "index": element.get("index")},
            kind,
            enum_type,
            service,
        )

    def matches(self, candidate: Any) -> bool:
        """Check whether a candidate value matches the stored index."""
        if candidate is None:
            candidate = ""
        elif not isinstance(candidate, str):
            candidate = to_text(candidate, self.kind)
        return index_matches(candidate, self.index)

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"hash": self.hash, "index": self.index}

    def to_xml(self) -> str:
        """Render as ``<encryptedValue index="...">envelope</encryptedValue>``."""
        element = ET.Element(_XML_ROOT)
        if self.index is not None:
            element.set("index", self.index)
        element.text = self.hash
        return ET.tostring(element, encoding="unicode")

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept plaintext, primitives, envelopes or a stored mapping; serialize as to_dict()."""

        def validate(value: Any) -> "EncryptedValueWithIndex":
            if isinstance(value, cls):
                return value
            if isinstance(value, Mapping):
                return cls.from_dict(value)
            return cls.from_value(value)

        return core_schema.no_info_plain_validator_function(
            validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                cls.to_dict,
                info_arg=False,
                return_schema=core_schema.dict_schema(
                    core_schema.str_schema(),
                    core_schema.nullable_schema(core_schema.str_schema()),
                ),
            ),
        )


class EncryptedObject(Generic[T]):
    """
    A serialized object and its envelope.

    Example:
        wrapped = EncryptedObject.from_object(profile, SerializerFormat.XML)
        again = EncryptedObject.from_envelope(str(wrapped), Profile)
        assert again.get_value() == profile
    """

    def __init__(self, hash: str, value: Optional[T] = None, fmt: SerializerFormat = SerializerFormat.JSON):
        self.hash = hash
        self.format = fmt
        self._value = value

    @classmethod
    def from_object(
        cls,
        obj: T,
        fmt: SerializerFormat = SerializerFormat.JSON,
        service: Optional[CryptographyService] = None,
    ) -> "EncryptedObject[T]":
        service = service or get_service()
        fmt = SerializerFormat.parse(fmt)
        return cls(service.encrypt_object(obj, fmt), obj, fmt)

    @classmethod
    def from_envelope(
        cls,
        envelope: str,
        target: Type[T],
        default_format: SerializerFormat = SerializerFormat.JSON,
        service: Optional[CryptographyService] = None,
    ) -> "EncryptedObject[T]":
        """Decrypt an envelope; untagged envelopes are read as ``default_format``."""
        service = service or get_service()
        value = service.decrypt_object(envelope, target, default_format=default_format)
        fmt = service.serialization_format(envelope) if service.is_serialized_value(envelope) else default_format
        return cls(envelope, value, fmt)

    @classmethod
    async def create_async(
        cls,
        obj: T,
        fmt: SerializerFormat = SerializerFormat.JSON,
        service: Optional[CryptographyService] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> "EncryptedObject[T]":
        service = service or get_service()
        fmt = SerializerFormat.parse(fmt)
        envelope = await service.encrypt_object_async(obj, fmt, cancel_event=cancel_event)
        return cls(envelope, obj, fmt)

    @classmethod
    async def open_async(
        cls,
        envelope: str,
        target: Type[T],
        default_format: SerializerFormat = SerializerFormat.JSON,
        service: Optional[CryptographyService] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> "EncryptedObject[T]":
        service = service or get_service()
        value = await service.decrypt_object_async(
            envelope, target, default_format=default_format, cancel_event=cancel_event
        )
        fmt = service.serialization_format(envelope) if service.is_serialized_value(envelope) else default_format
        return cls(envelope, value, fmt)

    def get_value(self) -> Optional[T]:
        return self._value

    @property
    def value(self) -> Optional[T]:
        return self._value

    def __str__(self) -> str:
        return self.hash

    def __repr__(self) -> str:
        return f"{type(self).__name__}(format={self.format.value}, hash={self.hash[:24]}...)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncryptedObject):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept an instance of the target type or an envelope; serialize as the envelope."""
        args = get_args(source_type)
        if not args:
            raise TypeError(f"{cls.__name__} must be parametrized, e.g. {cls.__name__}[MyModel]")
        target = args[0]

        def validate(value: Any) -> "EncryptedObject":
            if isinstance(value, cls):
                return value
            if isinstance(value, str) and is_envelope(value):
                return cls.from_envelope(value, target)
            if isinstance(target, type) and not isinstance(value, target):
                value = TypeAdapter(target).validate_python(value)
            return cls.from_object(value)

        return core_schema.no_info_plain_validator_function(
            validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str,
                info_arg=False,
                return_schema=core_schema.str_schema(),
            ),
        )


class EncryptedObjectWithIndex(EncryptedObject[T]):
    """An EncryptedObject that also carries an index of its serialized form."""

    def __init__(self, hash: str, value: Optional[T] = None, fmt: SerializerFormat = SerializerFormat.JSON):
        super().__init__(hash, value, fmt)
        self.index = generate_object_index(value, fmt)

    def matches(self, candidate: T) -> bool:
        """Check whether a candidate object serializes to the stored index."""
        return object_index_matches(candidate, self.index, self.format)

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"hash": self.hash, "index": self.index}
