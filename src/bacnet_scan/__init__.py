"""bacnet-scan: BACnet/IP network discovery and data harvesting.

Typical usage::

    from bacnet_scan import ScanOptions, scan

    result = scan(ScanOptions(include_trend_log=True))
    print(result.to_dict())
"""

__version__ = "0.3.0"

from bacnet_scan.config import ScanConfig, ScanOptions
from bacnet_scan.discovery import RemoteDevice
from bacnet_scan.errors import EndpointError, ScanError
from bacnet_scan.report import DeviceReport, ObjectReport, ScanResult, dumps_report
from bacnet_scan.scanner import run_scan, scan, scan_devices
from bacnet_scan.session import ScanSession, open_session
from bacnet_scan.values import DecodedValue, ValueKind

__all__ = [
    "DecodedValue",
    "DeviceReport",
    "EndpointError",
    "ObjectReport",
    "RemoteDevice",
    "ScanConfig",
    "ScanError",
    "ScanOptions",
    "ScanResult",
    "ScanSession",
    "ValueKind",
    "__version__",
    "dumps_report",
    "open_session",
    "run_scan",
    "scan",
    "scan_devices",
]
