"""Object enumeration for discovered devices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bac_py.services.errors import BACnetError
from bac_py.types.enums import ErrorCode

if TYPE_CHECKING:
    from bac_py.types.primitives import ObjectIdentifier

    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.session import ScanSession

logger = logging.getLogger(__name__)


async def list_objects(session: ScanSession, device: RemoteDevice) -> list[ObjectIdentifier]:
    """Read a device's ``object-list``.

    A device without an object list still takes part in the scan with no
    objects, so an empty value or an unknown-property error yields ``[]``.
    Every other failure propagates.

    :param session: Active scan session.
    :param device: Device to enumerate.
    :returns: Object identifiers in the order the device lists them.
    """
    try:
        objects = await session.client.get_object_list(device.address, device.instance)
    except BACnetError as exc:
        if exc.error_code != ErrorCode.UNKNOWN_PROPERTY:
            raise
        logger.debug("device %s has no object-list", device.instance)
        return []
    logger.debug("device %s lists %d object(s)", device.instance, len(objects))
    return list(objects or [])
