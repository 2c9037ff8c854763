"""Exception types raised by bacnet-scan.

Protocol failures surface as the ``bac_py`` error family
(:class:`~bac_py.services.errors.BACnetBaseError`) or :class:`TimeoutError`
and are contained per cell, per device or per backup.  Only failures that
end a whole scan use the types below.
"""

from __future__ import annotations


class ScanError(Exception):
    """Base exception for scan failures."""


class EndpointError(ScanError):
    """The local BACnet endpoint could not be started.

    This is the only failure that aborts a scan.
    """

    def __init__(self, interface: str, port: int, reason: str) -> None:
        self.interface = interface
        self.port = port
        super().__init__(f"Cannot open BACnet endpoint on {interface}:{port}: {reason}")
