"""Device filtering: by instance before a scan, by properties after it."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.report import DeviceReport, ScanResult

logger = logging.getLogger(__name__)


def select_devices(
    devices: Iterable[RemoteDevice],
    keep_ids: Iterable[int] | None = None,
    remove_ids: Iterable[int] | None = None,
) -> list[RemoteDevice]:
    """Narrow discovered devices by instance number.

    An allow-list, when given, is authoritative and ``remove_ids`` is not
    consulted.  Order is preserved.

    :param devices: Discovered devices.
    :param keep_ids: Only these instances survive.
    :param remove_ids: These instances are dropped.
    """
    if keep_ids is not None:
        keep = set(keep_ids)
        return [d for d in devices if d.instance in keep]
    remove = set(remove_ids or ())
    return [d for d in devices if d.instance not in remove]


def matches(report: DeviceReport, predicate: Mapping[str, Any]) -> bool:
    """Whether every key/value of *predicate* equals the device object's property.

    An expected ``None`` matches a property the device object does not have,
    and an empty predicate matches every device.  Error cells never match.
    """
    properties = report.device_properties
    for key, expected in predicate.items():
        value = properties.get(key)
        if value is None:
            if expected is not None:
                return False
        elif value.is_error or value.value != expected:
            return False
    return True


def filter_by_properties(
    result: ScanResult, predicates: Sequence[Mapping[str, Any]]
) -> ScanResult:
    """Drop devices whose Device object matches any predicate.

    :param result: Completed scan result.
    :param predicates: Mappings of property name to plain value, e.g.
        ``{"vendor-name": "GNU", "model-name": "XYZ"}``.
    :returns: A new result without the matching devices.
    """
    if not predicates:
        return result
    kept = {}
    for instance, report in result.devices.items():
        if any(matches(report, p) for p in predicates):
            logger.info("excluding device %s by properties", instance)
            continue
        kept[instance] = report
    return dataclasses.replace(result, devices=kept)
