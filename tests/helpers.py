"""Shared test utilities for bacnet-scan tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from bac_py.network.address import BACnetAddress, BIPAddress
from bac_py.services.read_property_multiple import (
    ReadAccessResult,
    ReadPropertyMultipleACK,
    ReadResultElement,
)
from bac_py.types.enums import ErrorClass, ErrorCode, PropertyIdentifier, Segmentation

from bacnet_scan.config import ScanConfig
from bacnet_scan.discovery import RemoteDevice
from bacnet_scan.session import ScanSession

PEER = BACnetAddress(mac_address=BIPAddress(host="192.168.1.100", port=0xBAC0).encode())
ROUTED_PEER = BACnetAddress(
    network=5, mac_address=BIPAddress(host="10.0.0.7", port=0xBAC0).encode()
)


def make_client() -> MagicMock:
    """A BACnetClient stand-in whose service calls are all AsyncMocks."""
    client = MagicMock()
    client.discover = AsyncMock(return_value=[])
    client.read_property = AsyncMock()
    client.read_property_multiple = AsyncMock()
    client.get_object_list = AsyncMock(return_value=[])
    client.read_range = AsyncMock()
    client.atomic_read_file = AsyncMock()
    client.reinitialize_device = AsyncMock()
    return client


def make_session(client: MagicMock | None = None, **config: object) -> ScanSession:
    return ScanSession(client=client or make_client(), config=ScanConfig(**config))


def make_device(
    instance: int = 1000, address: BACnetAddress = PEER, name: str | None = "dev-1000"
) -> RemoteDevice:
    return RemoteDevice(
        instance=instance,
        address=address,
        vendor_id=260,
        max_apdu_length=1476,
        segmentation_supported=Segmentation.BOTH,
        name=name,
    )


type Cell = bytes | tuple[ErrorClass, ErrorCode]


def result_for(oid, cells: dict[PropertyIdentifier, Cell]) -> ReadAccessResult:
    elements = []
    for pid, cell in cells.items():
        if isinstance(cell, tuple):
            elements.append(ReadResultElement(property_identifier=pid, property_access_error=cell))
        else:
            elements.append(ReadResultElement(property_identifier=pid, property_value=cell))
    return ReadAccessResult(object_identifier=oid, list_of_results=elements)


def rpm_ack(*results: ReadAccessResult) -> ReadPropertyMultipleACK:
    return ReadPropertyMultipleACK(list_of_read_access_results=list(results))
