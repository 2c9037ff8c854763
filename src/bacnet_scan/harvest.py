"""Batched property harvesting.

All curated properties of all objects of one device are fetched with a
single ReadPropertyMultiple.  Each returned cell is decoded on its own so
that one bad value never costs the rest of the batch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bac_py.services.read_property_multiple import PropertyReference, ReadAccessSpecification

from bacnet_scan.properties import property_name, resolve_properties
from bacnet_scan.values import DecodedValue, decode_value

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bac_py.services.read_property_multiple import ReadResultElement
    from bac_py.types.enums import PropertyIdentifier
    from bac_py.types.primitives import ObjectIdentifier

    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.session import ScanSession

logger = logging.getLogger(__name__)

type PropertyValueTable = dict[tuple[ObjectIdentifier, PropertyIdentifier], DecodedValue]
"""Decoded cells keyed by (object, property). Every requested cell is present."""

MISSING = "missing from response"


def build_read_specs(object_ids: Iterable[ObjectIdentifier]) -> list[ReadAccessSpecification]:
    """One read access specification per object, using its curated property set."""
    return [
        ReadAccessSpecification(
            object_identifier=oid,
            list_of_property_references=[
                PropertyReference(pid) for pid in resolve_properties(oid.object_type)
            ],
        )
        for oid in object_ids
    ]


def decode_cell(elem: ReadResultElement) -> DecodedValue:
    """Decode one ReadPropertyMultiple result element.

    Never raises: access errors and decoding failures become ``ERROR`` cells.
    """
    if elem.property_access_error is not None:
        err_class, err_code = elem.property_access_error
        return DecodedValue.error(f"{err_class.name}: {err_code.name}")
    if elem.property_value is None:
        return DecodedValue.error(MISSING)
    try:
        return decode_value(elem.property_value, elem.property_identifier)
    except Exception as exc:
        logger.debug("cannot decode %s: %s", elem.property_identifier, exc)
        return DecodedValue.error(f"caught exception: {exc}")


async def harvest(
    session: ScanSession,
    device: RemoteDevice,
    object_ids: Sequence[ObjectIdentifier],
) -> PropertyValueTable:
    """Read the curated properties of *object_ids* in one batched request.

    :param session: Active scan session.
    :param device: Device owning the objects.
    :param object_ids: Objects from :func:`~bacnet_scan.objects.list_objects`.
    :returns: Table of decoded cells in request order.  Cells the device did
        not return are recorded as ``ERROR`` cells.
    :raises BACnetBaseError: If the batched request itself fails.
    """
    if not object_ids:
        return {}
    specs = build_read_specs(object_ids)
    logger.debug("harvest %d object(s) from device %s", len(specs), device.instance)
    ack = await session.client.read_property_multiple(device.address, specs)

    received: PropertyValueTable = {}
    for result in ack.list_of_read_access_results:
        for elem in result.list_of_results:
            received[(result.object_identifier, elem.property_identifier)] = decode_cell(elem)

    table: PropertyValueTable = {}
    for spec in specs:
        for ref in spec.list_of_property_references:
            key = (spec.object_identifier, ref.property_identifier)
            table[key] = received.get(key, DecodedValue.error(MISSING))
    return table


def group_by_object(table: PropertyValueTable) -> dict[int, dict[int, dict[str, DecodedValue]]]:
    """Nest a value table as ``object-type -> instance -> {property-name: value}``."""
    grouped: dict[int, dict[int, dict[str, DecodedValue]]] = {}
    for (oid, pid), value in table.items():
        by_instance = grouped.setdefault(int(oid.object_type), {})
        by_instance.setdefault(oid.instance_number, {})[property_name(pid)] = value
    return grouped
