"""Device discovery via Who-Is / I-Am."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bac_py.network.address import BIPAddress
from bac_py.services.read_property_multiple import PropertyReference, ReadAccessSpecification
from bac_py.types.enums import ObjectType, PropertyIdentifier, Segmentation
from bac_py.types.primitives import ObjectIdentifier

from bacnet_scan.values import ValueKind, decode_value

if TYPE_CHECKING:
    from bac_py.app.client import DiscoveredDevice
    from bac_py.network.address import BACnetAddress

    from bacnet_scan.session import ScanSession

logger = logging.getLogger(__name__)

_EXTENDED_PROPERTIES = (
    PropertyIdentifier.OBJECT_NAME,
    PropertyIdentifier.SEGMENTATION_SUPPORTED,
    PropertyIdentifier.MAX_APDU_LENGTH_ACCEPTED,
)


@dataclass(frozen=True, slots=True)
class RemoteDevice:
    """A device that answered the discovery broadcast.

    Instance numbers are unique within one scan.
    """

    instance: int
    address: BACnetAddress
    vendor_id: int
    max_apdu_length: int
    segmentation_supported: Segmentation
    name: str | None = None
    """Object name from the extended-info read, or ``None`` if it failed."""

    @classmethod
    def from_discovered(cls, device: DiscoveredDevice) -> RemoteDevice:
        return cls(
            instance=device.instance,
            address=device.address,
            vendor_id=device.vendor_id,
            max_apdu_length=device.max_apdu_length,
            segmentation_supported=device.segmentation_supported,
        )

    @property
    def object_identifier(self) -> ObjectIdentifier:
        """The device's own Device object."""
        return ObjectIdentifier(ObjectType.DEVICE, self.instance)

    @property
    def ip_address(self) -> str:
        """Dotted IPv4 address, or ``""`` for non BACnet/IP MACs."""
        if len(self.address.mac_address) != 6:
            return ""
        return BIPAddress.decode(self.address.mac_address).host

    @property
    def mac_address(self) -> str:
        return self.address.mac_address.hex()

    @property
    def network_number(self) -> int:
        """Remote network number, 0 on the local network."""
        return self.address.network or 0

    def __repr__(self) -> str:
        return f"RemoteDevice(instance={self.instance}, address='{self.address}')"


async def discover(
    session: ScanSession,
    low_limit: int | None = None,
    high_limit: int | None = None,
    port: int | None = None,
) -> list[RemoteDevice]:
    """Broadcast a Who-Is and return every device that answered.

    The Who-Is is limited to ``[low_limit, high_limit]`` only when both
    bounds are given.  Replies are collected for the session's fixed settle
    time; there is no retry, so callers wanting more confidence call again.
    An empty list is a normal outcome.

    :param session: Active scan session.
    :param low_limit: Lowest device instance to ask for.
    :param high_limit: Highest device instance to ask for.
    :param port: Destination UDP port for a directed broadcast.
    :returns: Devices in reply order, one per instance, each enriched with
        extended info where the device provided it.
    """
    responses = await _who_is(session, low_limit, high_limit, port)

    devices: dict[int, RemoteDevice] = {}
    for response in responses:
        if response.instance not in devices:
            devices[response.instance] = RemoteDevice.from_discovered(response)
    logger.info("discovered %d device(s)", len(devices))

    return [await read_extended_info(session, device) for device in devices.values()]


async def read_extended_info(session: ScanSession, device: RemoteDevice) -> RemoteDevice:
    """Fill in name, segmentation and max APDU from the Device object.

    Best effort: if the request fails or its reply cannot be decoded the
    device is returned unchanged, and undecodable values are skipped.
    """
    spec = ReadAccessSpecification(
        object_identifier=device.object_identifier,
        list_of_property_references=[PropertyReference(p) for p in _EXTENDED_PROPERTIES],
    )
    try:
        ack = await session.client.read_property_multiple(device.address, [spec])
    except Exception as exc:
        logger.debug("extended info for device %s unavailable: %s", device.instance, exc)
        return device

    changes: dict[str, object] = {}
    for result in ack.list_of_read_access_results:
        for elem in result.list_of_results:
            if elem.property_value is None:
                continue
            try:
                value = decode_value(elem.property_value)
            except Exception as exc:
                logger.debug(
                    "device %s: cannot decode %s: %s",
                    device.instance,
                    elem.property_identifier,
                    exc,
                )
                continue
            match elem.property_identifier:
                case PropertyIdentifier.OBJECT_NAME if value.kind is ValueKind.STRING:
                    changes["name"] = value.value
                case PropertyIdentifier.SEGMENTATION_SUPPORTED if value.kind is ValueKind.INTEGER:
                    with contextlib.suppress(ValueError):
                        changes["segmentation_supported"] = Segmentation(value.value)
                case PropertyIdentifier.MAX_APDU_LENGTH_ACCEPTED if (
                    value.kind is ValueKind.INTEGER
                ):
                    changes["max_apdu_length"] = value.value
    return dataclasses.replace(device, **changes)


async def list_device_ids(
    session: ScanSession,
    low_limit: int | None = None,
    high_limit: int | None = None,
    port: int | None = None,
) -> list[int]:
    """Discovery only: instance numbers of the responding devices."""
    responses = await _who_is(session, low_limit, high_limit, port)
    return list(dict.fromkeys(r.instance for r in responses))


async def _who_is(
    session: ScanSession,
    low_limit: int | None,
    high_limit: int | None,
    port: int | None,
) -> list[DiscoveredDevice]:
    if low_limit is None or high_limit is None:
        low_limit = high_limit = None
    config = session.config
    logger.info("discover low=%s high=%s settle=%ss", low_limit, high_limit, config.settle_time)
    return await session.client.discover(
        low_limit=low_limit,
        high_limit=high_limit,
        destination=config.broadcast_destination(port),
        timeout=config.settle_time,
    )
