"""Trend Log buffer retrieval.

The populated window of a Trend Log is read with a single ReadRange by
sequence number and decoded into :data:`LogEntry` values.
"""

from __future__ import annotations

import contextlib
import datetime
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bac_py.encoding.primitives import (
    decode_bit_string,
    decode_date,
    decode_real,
    decode_time,
)
from bac_py.encoding.tags import TagClass, decode_tag, extract_context_value
from bac_py.services.read_property_multiple import PropertyReference, ReadAccessSpecification
from bac_py.services.read_range import RangeBySequenceNumber
from bac_py.types.enums import PropertyIdentifier

from bacnet_scan.harvest import decode_cell
from bacnet_scan.properties import property_name
from bacnet_scan.values import ValueKind, format_date, format_time

if TYPE_CHECKING:
    from bac_py.encoding.tags import Tag
    from bac_py.types.primitives import BACnetDate, BACnetTime, ObjectIdentifier

    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.session import ScanSession

logger = logging.getLogger(__name__)

_WILDCARD = 0xFF

# BACnetLogRecord log-datum choices
_LOG_STATUS = 0
_REAL_VALUE = 2
_TIME_CHANGE = 9

# BACnetLogStatus bits, in bit order
_LOG_STATUS_FLAGS = ("log-disabled", "buffer-purged", "log-interrupted")


@dataclass(frozen=True, slots=True)
class LogSample:
    """A logged real value."""

    value: float
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "time": self.timestamp}


@dataclass(frozen=True, slots=True)
class LogStatusEntry:
    """A change of the log's own status."""

    flags: tuple[str, ...]
    """Names of the status bits that are set."""
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"log-status": list(self.flags), "time": self.timestamp}


@dataclass(frozen=True, slots=True)
class TimeChangeEntry:
    """A clock change on the logging device, in seconds."""

    offset: float
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"time-change": self.offset, "time": self.timestamp}


type LogEntry = LogSample | LogStatusEntry | TimeChangeEntry


def window_start(total_record_count: int, record_count: int) -> int:
    """Sequence number of the oldest record still in the buffer.

    ``total-record-count`` numbers every record ever logged, so the
    ``record-count`` records currently held end at that number.
    """
    return total_record_count - record_count + 1


def format_timestamp(date: BACnetDate, time: BACnetTime) -> str:
    """ISO-8601 timestamp, or a ``*``-wildcarded form if fields are unspecified."""
    fields = (date.year, date.month, date.day, time.hour, time.minute, time.second)
    if _WILDCARD not in fields:
        hundredth = 0 if time.hundredth == _WILDCARD else time.hundredth
        with contextlib.suppress(ValueError):
            return datetime.datetime(*fields, hundredth * 10000).isoformat()
    return f"{format_date(date)}T{format_time(time)}"


def decode_log_records(item_data: bytes | memoryview) -> list[LogEntry]:
    """Decode a sequence of encoded ``BACnetLogRecord`` items.

    Real values, log-status changes and time changes are kept in buffer
    order; every other datum choice is skipped.

    :param item_data: ``itemData`` of a ReadRange-ACK on ``log-buffer``.
    :returns: Decoded entries.
    :raises ValueError: If the data is not a well-formed record sequence.
    """
    data = memoryview(bytes(item_data))
    entries: list[LogEntry] = []
    offset = 0
    while offset < len(data):
        # [0] timestamp: Date, Time
        tag, offset = decode_tag(data, offset)
        _expect_opening(tag, 0)
        tag, offset = decode_tag(data, offset)
        date = decode_date(data[offset : offset + tag.length])
        offset += tag.length
        tag, offset = decode_tag(data, offset)
        time = decode_time(data[offset : offset + tag.length])
        offset += tag.length
        _tag, offset = decode_tag(data, offset)

        # [1] log-datum: one context-tagged choice
        tag, offset = decode_tag(data, offset)
        _expect_opening(tag, 1)
        choice, offset = decode_tag(data, offset)
        if choice.is_opening:
            _skipped, offset = extract_context_value(data, offset, choice.number)
            content = b""
        else:
            content = bytes(data[offset : offset + choice.length])
            offset += choice.length
        _tag, offset = decode_tag(data, offset)

        # [2] status-flags, optional
        if offset < len(data):
            tag, after = decode_tag(data, offset)
            if tag.cls == TagClass.CONTEXT and tag.number == 2 and not tag.is_opening:
                offset = after + tag.length

        timestamp = format_timestamp(date, time)
        match choice.number:
            case 0:  # _LOG_STATUS
                bits = decode_bit_string(content)
                flags = tuple(
                    name for i, name in enumerate(_LOG_STATUS_FLAGS) if i < len(bits) and bits[i]
                )
                entries.append(LogStatusEntry(flags, timestamp))
            case 2:  # _REAL_VALUE
                entries.append(LogSample(decode_real(content), timestamp))
            case 9:  # _TIME_CHANGE
                entries.append(TimeChangeEntry(decode_real(content), timestamp))
            case _:
                logger.debug("skipping log datum choice %d", choice.number)
    return entries


async def read_trend_log(
    session: ScanSession,
    device: RemoteDevice,
    object_id: ObjectIdentifier,
) -> list[LogEntry]:
    """Read the populated window of a Trend Log object's buffer.

    :param session: Active scan session.
    :param device: Device hosting the Trend Log.
    :param object_id: The Trend Log object.
    :returns: Decoded log entries, oldest first.
    :raises BACnetBaseError: If a request fails.
    :raises ValueError: If the record counts or buffer cannot be decoded.
    """
    spec = ReadAccessSpecification(
        object_identifier=object_id,
        list_of_property_references=[
            PropertyReference(PropertyIdentifier.TOTAL_RECORD_COUNT),
            PropertyReference(PropertyIdentifier.RECORD_COUNT),
        ],
    )
    ack = await session.client.read_property_multiple(device.address, [spec])
    counts: dict[PropertyIdentifier, int] = {}
    for result in ack.list_of_read_access_results:
        for elem in result.list_of_results:
            value = decode_cell(elem)
            if value.kind is not ValueKind.INTEGER:
                msg = f"cannot read {property_name(elem.property_identifier)}: {value.value}"
                raise ValueError(msg)
            counts[elem.property_identifier] = value.value

    total = counts.get(PropertyIdentifier.TOTAL_RECORD_COUNT)
    current = counts.get(PropertyIdentifier.RECORD_COUNT)
    if total is None or current is None:
        msg = f"record counts missing for {object_id}"
        raise ValueError(msg)
    if current == 0:
        return []

    start = window_start(total, current)
    logger.debug(
        "read_range %s on device %s from %d count %d", object_id, device.instance, start, current
    )
    range_ack = await session.client.read_range(
        device.address,
        object_id,
        PropertyIdentifier.LOG_BUFFER,
        range_qualifier=RangeBySequenceNumber(reference_sequence_number=start, count=current),
    )
    return decode_log_records(range_ack.item_data)


def _expect_opening(tag: Tag, number: int) -> None:
    if not (tag.is_opening and tag.number == number):
        msg = f"Expected opening tag {number} in log record"
        raise ValueError(msg)
