"""
Object serialization for encrypted objects.

Objects are turned into text before encryption and back after decryption.
Two formats are supported, recorded in the envelope's format segment:

    JSON - pydantic JSON dump / validation
    XML  - one element per field, root element named after the type;
           lists, empty mappings and null list items carry a type="..." marker

Anything pydantic can describe (BaseModel subclasses, dataclasses,
TypedDicts, dicts, lists, primitives) can be serialized.
"""

import re
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Any, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from fieldcipher.errors import SerializationError

T = TypeVar("T")

_LIST_MARKER = "list"
_DICT_MARKER = "dict"
_NULL_MARKER = "null"

_XML_NAME = re.compile(r"[^\W\d][\w.\-]*\Z")
_XML_ILLEGAL_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class SerializerFormat(str, Enum):
    """Supported serialization formats."""

    JSON = "JSON"
    XML = "XML"

    @classmethod
    def parse(cls, value: "str | SerializerFormat") -> "SerializerFormat":
        """Parse a format name, ignoring case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown serialization format: {value}") from None


def serialize(obj: Any, fmt: SerializerFormat = SerializerFormat.JSON) -> str:
    """
    Serialize an object to text.

    Args:
        obj: Object to serialize
        fmt: Output format

    Returns:
        JSON or XML text

    Raises:
        SerializationError: If the object cannot be serialized
    """
    fmt = SerializerFormat.parse(fmt)
    try:
        if fmt is SerializerFormat.XML:
            root = _to_element(type(obj).__name__, _dump_python(obj))
            # A raw CR would be normalized to LF by the parser
            return ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
        if isinstance(obj, BaseModel):
            return obj.model_dump_json()
        return TypeAdapter(type(obj)).dump_json(obj).decode("utf-8")
    except SerializationError:
        raise
    except Exception as e:
        raise SerializationError(f"Cannot serialize {type(obj).__name__} as {fmt.value}: {e}") from e


def deserialize(text: str, cls: Type[T], fmt: SerializerFormat = SerializerFormat.JSON) -> T:
    """
    Deserialize text produced by serialize().

    Args:
        text: JSON or XML text
        cls: Target type
        fmt: Input format

    Returns:
        Instance of ``cls``

    Raises:
        SerializationError: If the text is malformed or does not match ``cls``
    """
    fmt = SerializerFormat.parse(fmt)
    try:
        if fmt is SerializerFormat.XML:
            data = _from_element(ET.fromstring(text))
            if isinstance(cls, type) and issubclass(cls, BaseModel):
                return cls.model_validate(data)
            return TypeAdapter(cls).validate_python(data)
        if isinstance(cls, type) and issubclass(cls, BaseModel):
            return cls.model_validate_json(text)
        return TypeAdapter(cls).validate_json(text)
    except (ValidationError, ET.ParseError, ValueError, TypeError) as e:
        name = getattr(cls, "__name__", str(cls))
        raise SerializationError(f"Cannot deserialize {fmt.value} into {name}: {e}") from e


def is_xml(text: str) -> bool:
    """Check whether text is a well-formed XML document."""
    try:
        ET.fromstring(text)
        return True
    except ET.ParseError:
        return False


def _dump_python(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    return TypeAdapter(type(obj)).dump_python(obj, mode="json")


def _check_tag(tag: str) -> str:
    if not _XML_NAME.match(tag):
        raise SerializationError(f"Cannot serialize key {tag!r} as XML: not a valid element name")
    return tag


def _check_text(text: str) -> str:
    match = _XML_ILLEGAL_CHARS.search(text)
    if match:
        raise SerializationError(
            f"Cannot serialize {match.group()!r} as XML: character not allowed in XML 1.0"
        )
    return text


def _to_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(_check_tag(tag))
    if isinstance(value, dict):
        for key, item in value.items():
            if item is not None:
                element.append(_to_element(str(key), item))
        # Without children a mapping would read back as ""
        if not len(element):
            element.set("type", _DICT_MARKER)
    elif isinstance(value, list):
        element.set("type", _LIST_MARKER)
        for item in value:
            element.append(_to_element("item", item))
    elif isinstance(value, bool):
        element.text = "true" if value else "false"
    elif value is None:
        element.set("type", _NULL_MARKER)
    else:
        element.text = _check_text(str(value))
    return element


def _from_element(element: ET.Element) -> Any:
    marker = element.get("type")
    if marker == _NULL_MARKER:
        return None
    if marker == _DICT_MARKER:
        return {}
    if marker == _LIST_MARKER:
        return [_from_element(child) for child in element]
    if len(element):
        return {child.tag: _from_element(child) for child in element}
    return element.text or ""
