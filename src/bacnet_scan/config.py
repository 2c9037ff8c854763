"""Scan configuration."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from bac_py.app.application import DeviceConfig
from bac_py.network.address import GLOBAL_BROADCAST, BACnetAddress, parse_address

DEFAULT_PORT = 0xBAC0


@dataclass
class ScanConfig:
    """Local endpoint and transfer settings for a scan session."""

    local_instance: int = 1337
    """Device instance number the scanner announces itself with."""

    interface: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    """Local UDP port to bind."""

    broadcast_address: str | None = None
    """Directed broadcast IP (e.g. ``"192.168.1.255"``); ``None`` for global broadcast."""

    dest_port: int = DEFAULT_PORT
    """UDP port the Who-Is is sent to when ``broadcast_address`` is set.

    A global broadcast goes out on the transport's own port and ignores it.
    """

    apdu_timeout: int = 20000  # milliseconds
    apdu_retries: int = 3

    settle_time: float = 0.7
    """Seconds to wait for I-Am replies after the Who-Is."""

    chunk_size: int = 1500
    """Octets requested per AtomicReadFile during backups."""

    concurrency: int = 1
    """Devices processed at once. Requests within one device never overlap."""

    def device_config(self) -> DeviceConfig:
        """Build the protocol stack's :class:`DeviceConfig` for this scan."""
        return DeviceConfig(
            instance_number=self.local_instance,
            name="bacnet-scan",
            interface=self.interface,
            port=self.port,
            apdu_timeout=self.apdu_timeout,
            apdu_retries=self.apdu_retries,
        )

    def broadcast_destination(self, port: int | None = None) -> BACnetAddress:
        """Destination for the discovery Who-Is.

        :param port: Overrides :attr:`dest_port` for a directed broadcast;
            ignored for the global broadcast.
        """
        if self.broadcast_address is None:
            return GLOBAL_BROADCAST
        return parse_address(f"{self.broadcast_address}:{port or self.dest_port}")


@dataclass
class ScanOptions:
    """What a single scan should collect.

    ``keep_ids`` is authoritative when given; ``remove_ids`` is only
    consulted without it.  Each mapping in ``exclude_properties`` is one
    predicate over the device object's properties (keys are report names
    such as ``"model-name"``).
    """

    low_limit: int | None = None
    high_limit: int | None = None
    keep_ids: Sequence[int] | None = None
    remove_ids: Sequence[int] = ()
    exclude_properties: Sequence[Mapping[str, Any]] = field(default_factory=list)
    include_trend_log: bool = False
    backup_password: str | None = None
    """Password for ReinitializeDevice; ``None`` skips backups entirely."""

    @property
    def include_backup(self) -> bool:
        return self.backup_password is not None
