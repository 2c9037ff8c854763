"""Scan orchestration: discover, filter, harvest and aggregate."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from bac_py.types.enums import ObjectType

from bacnet_scan.backup import backup
from bacnet_scan.config import ScanOptions
from bacnet_scan.discovery import discover
from bacnet_scan.filters import filter_by_properties, select_devices
from bacnet_scan.harvest import group_by_object, harvest
from bacnet_scan.objects import list_objects
from bacnet_scan.report import DeviceReport, ObjectReport, ScanResult
from bacnet_scan.session import open_session
from bacnet_scan.trendlog import read_trend_log

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bac_py.types.primitives import ObjectIdentifier

    from bacnet_scan.config import ScanConfig
    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.session import ScanSession
    from bacnet_scan.trendlog import LogEntry

logger = logging.getLogger(__name__)


async def _trend_log_or_error(
    session: ScanSession, device: RemoteDevice, object_id: ObjectIdentifier
) -> list[LogEntry] | str:
    try:
        return await read_trend_log(session, device, object_id)
    except Exception as exc:
        logger.debug("trend log %s on device %s failed: %s", object_id, device.instance, exc)
        return f"error: {exc}"


async def scan_device(
    session: ScanSession, device: RemoteDevice, options: ScanOptions
) -> DeviceReport:
    """Collect the report for one device.

    Requests to the device are strictly sequential: object list, one
    batched property read, then trend logs and backup when enabled.

    :raises BACnetBaseError: If the object list or property read fails.
    """
    updated = datetime.now(UTC).isoformat()
    object_ids = await list_objects(session, device)
    grouped = group_by_object(await harvest(session, device, object_ids))

    trend_logs: dict[tuple[int, int], list[LogEntry] | str] = {}
    if options.include_trend_log:
        for oid in object_ids:
            if oid.object_type == ObjectType.TREND_LOG:
                key = (int(oid.object_type), oid.instance_number)
                trend_logs[key] = await _trend_log_or_error(session, device, oid)

    objects = {
        object_type: {
            instance: ObjectReport(properties, trend_logs.get((object_type, instance)))
            for instance, properties in instances.items()
        }
        for object_type, instances in grouped.items()
    }

    backup_data = None
    if options.include_backup:
        backup_data = await backup(session, device, options.backup_password)

    return DeviceReport(
        instance=device.instance,
        name=device.name,
        ip_address=device.ip_address,
        mac_address=device.mac_address,
        network_number=device.network_number,
        updated=updated,
        objects=objects,
        backup=backup_data,
    )


async def scan_devices(
    session: ScanSession,
    devices: Sequence[RemoteDevice],
    options: ScanOptions | None = None,
) -> ScanResult:
    """Scan *devices* and aggregate their reports.

    A device whose scan raises is logged and left out of the result; the
    other devices are unaffected.  Up to ``session.config.concurrency``
    devices are scanned at once.  The result keeps the order of *devices*
    and has ``options.exclude_properties`` applied.
    """
    options = options or ScanOptions()
    limit = asyncio.Semaphore(max(1, session.config.concurrency))

    async def _scan_one(device: RemoteDevice) -> DeviceReport | None:
        async with limit:
            logger.info("scanning device %s at %s", device.instance, device.address)
            try:
                return await scan_device(session, device, options)
            except Exception as exc:
                logger.warning("device %s dropped from scan: %s", device.instance, exc)
                return None

    reports = await asyncio.gather(*(_scan_one(device) for device in devices))
    result = ScanResult(devices={r.instance: r for r in reports if r is not None})
    return filter_by_properties(result, options.exclude_properties)


async def run_scan(
    options: ScanOptions | None = None, config: ScanConfig | None = None
) -> ScanResult:
    """Open a session, discover devices and scan every selected one.

    :raises EndpointError: If the local endpoint cannot be opened.
    """
    options = options or ScanOptions()
    async with open_session(config) as session:
        devices = await discover(session, options.low_limit, options.high_limit)
        selected = select_devices(devices, options.keep_ids, options.remove_ids)
        logger.info("scanning %d of %d device(s)", len(selected), len(devices))
        result = await scan_devices(session, selected, options)
    logger.info("scan complete: %d device(s) reported", len(result))
    return result


def scan(options: ScanOptions | None = None, config: ScanConfig | None = None) -> ScanResult:
    """Blocking wrapper around :func:`run_scan`."""
    return asyncio.run(run_scan(options, config))
