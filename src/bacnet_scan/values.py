"""Decoded property values for scan reports.

Raw property payloads arrive from the protocol stack as application-tagged
bytes.  :func:`decode_value` turns them into a :class:`DecodedValue`, a
closed tagged union over the kinds a report can represent.  Anything
outside that set becomes an explicit ``UNREPRESENTABLE`` value carrying the
raw bytes as hex instead of being dropped.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bac_py.encoding.primitives import (
    decode_character_string,
    decode_date,
    decode_double,
    decode_enumerated,
    decode_object_identifier,
    decode_real,
    decode_signed,
    decode_time,
    decode_unsigned,
)
from bac_py.encoding.tags import TagClass, decode_tag
from bac_py.types.enums import (
    EngineeringUnits,
    EventState,
    FileAccessMethod,
    ObjectType,
    PropertyIdentifier,
    Reliability,
    Segmentation,
)

if TYPE_CHECKING:
    from enum import IntEnum

    from bac_py.types.primitives import BACnetDate, BACnetTime

_WILDCARD = 0xFF

# Enumerated properties reported by name rather than by number.
_TEXTUAL_ENUMS: dict[PropertyIdentifier, type[IntEnum]] = {
    PropertyIdentifier.UNITS: EngineeringUnits,
    PropertyIdentifier.FILE_ACCESS_METHOD: FileAccessMethod,
    PropertyIdentifier.SEGMENTATION_SUPPORTED: Segmentation,
    PropertyIdentifier.RELIABILITY: Reliability,
    PropertyIdentifier.EVENT_STATE: EventState,
}


class ValueKind(enum.Enum):
    """Kinds of value a report cell can hold."""

    REAL = "real"
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    TEXT = "text"
    """Enumerations, dates, times and object identifiers rendered as text."""
    ERROR = "error"
    UNREPRESENTABLE = "unrepresentable"


@dataclass(frozen=True, slots=True)
class DecodedValue:
    """A single decoded property value or per-cell failure."""

    kind: ValueKind
    value: float | str | bool | int

    @classmethod
    def error(cls, message: str) -> DecodedValue:
        """Build an ``ERROR`` cell carrying *message*."""
        return cls(ValueKind.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.kind is ValueKind.ERROR

    def to_json(self) -> object:
        """JSON-friendly form used in reports.

        Plain kinds render as their value; errors as ``{"error": msg}`` and
        undecodable payloads as ``{"unrepresentable": hex}``.
        """
        if self.kind is ValueKind.ERROR:
            return {"error": self.value}
        if self.kind is ValueKind.UNREPRESENTABLE:
            return {"unrepresentable": self.value}
        return self.value


def format_date(date: BACnetDate) -> str:
    """Render a BACnet date as ``YYYY-MM-DD``, with ``*`` for wildcards."""
    year = "*" if date.year == _WILDCARD else f"{date.year:04d}"
    month = "*" if date.month == _WILDCARD else f"{date.month:02d}"
    day = "*" if date.day == _WILDCARD else f"{date.day:02d}"
    return f"{year}-{month}-{day}"


def format_time(time: BACnetTime) -> str:
    """Render a BACnet time as ``HH:MM:SS.hh``, with ``*`` for wildcards."""
    fields = (time.hour, time.minute, time.second)
    hms = ":".join("*" if f == _WILDCARD else f"{f:02d}" for f in fields)
    if time.hundredth in (0, _WILDCARD):
        return hms
    return f"{hms}.{time.hundredth:02d}"


def format_object_identifier(obj_type: int, instance: int) -> str:
    """Render an object identifier as ``analog-input:1``."""
    try:
        type_name = ObjectType(obj_type).name.lower().replace("_", "-")
    except ValueError:
        type_name = str(obj_type)
    return f"{type_name}:{instance}"


def _enumerated(value: int, property_identifier: PropertyIdentifier | None) -> DecodedValue:
    enum_cls = _TEXTUAL_ENUMS.get(property_identifier) if property_identifier else None
    if enum_cls is None:
        return DecodedValue(ValueKind.INTEGER, value)
    try:
        member = enum_cls(value)
    except ValueError:
        return DecodedValue(ValueKind.INTEGER, value)
    return DecodedValue(ValueKind.TEXT, member.name.lower().replace("_", "-"))


def decode_value(
    raw: bytes | memoryview,
    property_identifier: PropertyIdentifier | None = None,
) -> DecodedValue:
    """Decode an application-tagged property payload.

    Only single primitive values are representable.  Empty payloads,
    context-tagged constructed data, sequences of several values and
    primitive types without a report form (null, octet and bit strings)
    yield ``UNREPRESENTABLE``.

    :param raw: Property value bytes as returned by the protocol stack.
    :param property_identifier: Property the value belongs to; selects
        textual rendering for known enumerations such as ``units``.
    :returns: The decoded value.
    :raises ValueError: If the payload is truncated or otherwise malformed.
    """
    data = bytes(raw)
    if not data:
        return DecodedValue(ValueKind.UNREPRESENTABLE, "")

    tag, offset = decode_tag(data, 0)
    if tag.cls != TagClass.APPLICATION:
        return DecodedValue(ValueKind.UNREPRESENTABLE, data.hex())

    # Booleans carry their value in the tag itself
    end = offset if tag.number == 1 else offset + tag.length
    if end > len(data):
        msg = (
            f"Value truncated: tag {tag.number} claims {tag.length} bytes, "
            f"{len(data) - offset} remain"
        )
        raise ValueError(msg)
    if end < len(data):
        return DecodedValue(ValueKind.UNREPRESENTABLE, data.hex())

    content = data[offset:end]
    match tag.number:
        case 1:
            return DecodedValue(ValueKind.BOOLEAN, tag.is_boolean_true)
        case 2:
            return DecodedValue(ValueKind.INTEGER, decode_unsigned(content))
        case 3:
            return DecodedValue(ValueKind.INTEGER, decode_signed(content))
        case 4:
            return DecodedValue(ValueKind.REAL, decode_real(content))
        case 5:
            return DecodedValue(ValueKind.REAL, decode_double(content))
        case 7:
            return DecodedValue(ValueKind.STRING, decode_character_string(content))
        case 9:
            return _enumerated(decode_enumerated(content), property_identifier)
        case 10:
            return DecodedValue(ValueKind.TEXT, format_date(decode_date(content)))
        case 11:
            return DecodedValue(ValueKind.TEXT, format_time(decode_time(content)))
        case 12:
            obj_type, instance = decode_object_identifier(content)
            return DecodedValue(ValueKind.TEXT, format_object_identifier(obj_type, instance))
        case _:
            return DecodedValue(ValueKind.UNREPRESENTABLE, data.hex())
