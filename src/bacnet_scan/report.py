"""Scan result model and its JSON rendering."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from bac_py.types.enums import ObjectType

from bacnet_scan.backup import encode_files

if TYPE_CHECKING:
    from bacnet_scan.trendlog import LogEntry
    from bacnet_scan.values import DecodedValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ObjectReport:
    """Harvested properties of one object."""

    properties: dict[str, DecodedValue]
    """Decoded values keyed by hyphenated property name."""

    trend_log: list[LogEntry] | str | None = None
    """Trend Log buffer entries, an ``"error: ..."`` string, or ``None`` if not read."""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {name: value.to_json() for name, value in self.properties.items()}
        if isinstance(self.trend_log, str):
            result["trend-log-data"] = self.trend_log
        elif self.trend_log is not None:
            result["trend-log-data"] = [entry.to_dict() for entry in self.trend_log]
        return result


@dataclass(frozen=True, slots=True)
class DeviceReport:
    """Everything collected from one device."""

    instance: int
    name: str | None
    ip_address: str
    mac_address: str
    network_number: int
    updated: str
    """ISO-8601 time the device was scanned."""

    objects: dict[int, dict[int, ObjectReport]] = field(default_factory=dict)
    """Object type code -> instance -> report."""

    backup: list[bytes] | str | None = None
    """Configuration file contents, an ``"error: ..."`` string, or ``None`` if skipped."""

    @property
    def device_properties(self) -> dict[str, DecodedValue]:
        """Properties of the device's own Device object, if harvested."""
        report = self.objects.get(ObjectType.DEVICE, {}).get(self.instance)
        return report.properties if report is not None else {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the report document form with string keys.

        :returns: Dictionary with ``"update"``, ``"name"``, ``"ip-address"``,
            ``"mac-address"``, ``"network-number"``, ``"objects"`` and,
            when a backup was attempted, ``"backup-data"`` keys.
        """
        result: dict[str, Any] = {
            "update": self.updated,
            "name": self.name,
            "ip-address": self.ip_address,
            "mac-address": self.mac_address,
            "network-number": self.network_number,
            "objects": {
                str(object_type): {
                    str(instance): report.to_dict() for instance, report in instances.items()
                }
                for object_type, instances in self.objects.items()
            },
        }
        if isinstance(self.backup, str):
            result["backup-data"] = self.backup
        elif self.backup is not None:
            result["backup-data"] = encode_files(self.backup)
        return result


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Reports of every scanned device, in discovery order."""

    devices: dict[int, DeviceReport] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.devices)

    def __contains__(self, instance: object) -> bool:
        return instance in self.devices

    def to_dict(self) -> dict[str, Any]:
        return {str(instance): report.to_dict() for instance, report in self.devices.items()}


def dumps_report(result: ScanResult, *, pretty: bool = False, sort_keys: bool = False) -> bytes:
    """Serialize a scan result to JSON bytes with orjson.

    :param result: Result to serialize.
    :param pretty: Indent output with 2 spaces.
    :param sort_keys: Sort dict keys alphabetically.
    """
    options = orjson.OPT_NON_STR_KEYS
    if pretty:
        options |= orjson.OPT_INDENT_2
    if sort_keys:
        options |= orjson.OPT_SORT_KEYS
    return orjson.dumps(result.to_dict(), option=options)


def write_report(result: ScanResult, path: str | Path, *, pretty: bool = True) -> None:
    """Write a scan result as JSON to *path*."""
    data = dumps_report(result, pretty=pretty)
    Path(path).write_bytes(data)
    logger.info("wrote report for %d device(s) to %s", len(result), path)
