"""Curated property sets per BACnet object type.

Not every property of every object is worth a network round trip during a
site survey; this module picks the useful ones.  Lookup is total: unknown
and vendor-specific object types fall back to :data:`DEFAULT_PROPERTIES`.
"""

from __future__ import annotations

from bac_py.types.enums import ObjectType, PropertyIdentifier

DEFAULT_PROPERTIES: tuple[PropertyIdentifier, ...] = (
    PropertyIdentifier.OBJECT_NAME,
    PropertyIdentifier.DESCRIPTION,
    PropertyIdentifier.PRESENT_VALUE,
)
"""Fallback set for object types without a curated entry."""

_ANALOG_IO = (
    PropertyIdentifier.OBJECT_NAME,
    PropertyIdentifier.DESCRIPTION,
    PropertyIdentifier.PRESENT_VALUE,
    PropertyIdentifier.UNITS,
    PropertyIdentifier.OUT_OF_SERVICE,
)

_BINARY_IO = (
    PropertyIdentifier.OBJECT_NAME,
    PropertyIdentifier.DESCRIPTION,
    PropertyIdentifier.PRESENT_VALUE,
    PropertyIdentifier.OUT_OF_SERVICE,
)

_PROPERTY_SETS: dict[int, tuple[PropertyIdentifier, ...]] = {
    ObjectType.ANALOG_INPUT: _ANALOG_IO,
    ObjectType.ANALOG_OUTPUT: _ANALOG_IO,
    ObjectType.ANALOG_VALUE: DEFAULT_PROPERTIES,
    ObjectType.BINARY_INPUT: _BINARY_IO,
    ObjectType.BINARY_OUTPUT: _BINARY_IO,
    ObjectType.BINARY_VALUE: DEFAULT_PROPERTIES,
    ObjectType.DEVICE: (
        PropertyIdentifier.OBJECT_NAME,
        PropertyIdentifier.DESCRIPTION,
        PropertyIdentifier.DEVICE_TYPE,
        PropertyIdentifier.VENDOR_IDENTIFIER,
        PropertyIdentifier.VENDOR_NAME,
        PropertyIdentifier.MODEL_NAME,
    ),
    ObjectType.FILE: (
        PropertyIdentifier.OBJECT_NAME,
        PropertyIdentifier.DESCRIPTION,
        PropertyIdentifier.FILE_ACCESS_METHOD,
        PropertyIdentifier.FILE_SIZE,
        PropertyIdentifier.FILE_TYPE,
    ),
    ObjectType.LOOP: (
        *DEFAULT_PROPERTIES,
        PropertyIdentifier.MANIPULATED_VARIABLE_REFERENCE,
        PropertyIdentifier.CONTROLLED_VARIABLE_REFERENCE,
        PropertyIdentifier.SETPOINT_REFERENCE,
    ),
    ObjectType.MULTI_STATE_INPUT: _BINARY_IO,
    ObjectType.MULTI_STATE_OUTPUT: _BINARY_IO,
    ObjectType.MULTI_STATE_VALUE: DEFAULT_PROPERTIES,
    ObjectType.PROGRAM: (
        PropertyIdentifier.OBJECT_NAME,
        PropertyIdentifier.DESCRIPTION,
        PropertyIdentifier.PROGRAM_CHANGE,
        PropertyIdentifier.PROGRAM_LOCATION,
        PropertyIdentifier.PROGRAM_STATE,
    ),
    ObjectType.SCHEDULE: (
        PropertyIdentifier.OBJECT_NAME,
        PropertyIdentifier.DESCRIPTION,
        PropertyIdentifier.EFFECTIVE_PERIOD,
        PropertyIdentifier.WEEKLY_SCHEDULE,
        PropertyIdentifier.SCHEDULE_DEFAULT,
        PropertyIdentifier.EXCEPTION_SCHEDULE,
        PropertyIdentifier.LIST_OF_OBJECT_PROPERTY_REFERENCES,
    ),
    ObjectType.TREND_LOG: (
        PropertyIdentifier.OBJECT_NAME,
        PropertyIdentifier.DESCRIPTION,
        PropertyIdentifier.LOG_INTERVAL,
        PropertyIdentifier.TOTAL_RECORD_COUNT,
        PropertyIdentifier.RECORD_COUNT,
    ),
}

# Display names for the standard object types a survey usually meets.
_OBJECT_TYPE_NAMES: dict[int, str] = {
    0: "Analog Input",
    1: "Analog Output",
    2: "Analog Value",
    3: "Binary Input",
    4: "Binary Output",
    5: "Binary Value",
    6: "Calendar",
    7: "Command",
    8: "Device",
    9: "Event Enrollment",
    10: "File",
    11: "Group",
    12: "Loop",
    13: "Multi State Input",
    14: "Multi State Output",
    15: "Notification Class",
    16: "Program",
    17: "Schedule",
    18: "Averaging",
    19: "Multi State Value",
    20: "Trend Log",
    21: "Life Safety Point",
    22: "Life Safety Zone",
    23: "Accumulator",
    24: "Pulse Converter",
    25: "Event Log",
    26: "Global Group",
    27: "Trend Log Multiple",
    28: "Load Control",
    29: "Structured View",
    30: "Access Door",
}


def resolve_properties(object_type: ObjectType | int) -> tuple[PropertyIdentifier, ...]:
    """Return the ordered property identifiers to read for an object type.

    :param object_type: Object type code (an :class:`ObjectType` or any int,
        including vendor-specific codes).
    :returns: Non-empty tuple of property identifiers.
    """
    return _PROPERTY_SETS.get(int(object_type), DEFAULT_PROPERTIES)


def object_type_name(object_type: ObjectType | int) -> str:
    """Human-readable name for an object type code."""
    code = int(object_type)
    return _OBJECT_TYPE_NAMES.get(code, f"Vendor Specific ({code})")


def property_name(property_identifier: PropertyIdentifier) -> str:
    """Report key for a property, e.g. ``OBJECT_NAME`` -> ``"object-name"``."""
    return property_identifier.name.lower().replace("_", "-")
