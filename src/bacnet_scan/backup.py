"""Configuration backup of remote devices (Clause 19.1).

The device is put into backup mode with ReinitializeDevice, its
``configuration-files`` are downloaded with AtomicReadFile, and backup
mode is always ended again, whatever happened in between.
"""

from __future__ import annotations

import base64
import contextlib
import logging
from typing import TYPE_CHECKING

from bac_py.encoding.primitives import decode_all_application_values
from bac_py.services.file_access import (
    RecordReadAccess,
    RecordReadACK,
    StreamReadAccess,
)
from bac_py.services.read_property_multiple import PropertyReference, ReadAccessSpecification
from bac_py.types.enums import FileAccessMethod, PropertyIdentifier, ReinitializedState
from bac_py.types.primitives import ObjectIdentifier

from bacnet_scan.harvest import decode_cell
from bacnet_scan.properties import property_name
from bacnet_scan.values import ValueKind, decode_value

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from bacnet_scan.discovery import RemoteDevice
    from bacnet_scan.session import ScanSession

logger = logging.getLogger(__name__)


async def _file_layout(
    session: ScanSession, device: RemoteDevice, file_id: ObjectIdentifier
) -> tuple[int, FileAccessMethod]:
    spec = ReadAccessSpecification(
        object_identifier=file_id,
        list_of_property_references=[
            PropertyReference(PropertyIdentifier.FILE_SIZE),
            PropertyReference(PropertyIdentifier.FILE_ACCESS_METHOD),
        ],
    )
    ack = await session.client.read_property_multiple(device.address, [spec])
    size: int | None = None
    method: FileAccessMethod | None = None
    for result in ack.list_of_read_access_results:
        for elem in result.list_of_results:
            cell = decode_cell(elem)
            if cell.is_error:
                msg = f"cannot read {property_name(elem.property_identifier)}: {cell.value}"
                raise ValueError(msg)
            if elem.property_identifier == PropertyIdentifier.FILE_SIZE:
                size = cell.value
            elif elem.property_identifier == PropertyIdentifier.FILE_ACCESS_METHOD:
                raw = decode_value(elem.property_value)
                if raw.kind is ValueKind.INTEGER:
                    method = FileAccessMethod(raw.value)
    if size is None or method is None:
        msg = f"file-size or file-access-method missing for {file_id}"
        raise ValueError(msg)
    return size, method


async def read_file(
    session: ScanSession,
    device: RemoteDevice,
    file_id: ObjectIdentifier,
    chunk_size: int | None = None,
) -> bytes:
    """Download a File object in fixed-size chunks.

    Chunks are requested at offsets ``0, chunk_size, 2 * chunk_size, ...``
    while the offset is below ``file-size``; the last chunk asks only for
    the remainder.  Record-access files use the same offsets as record
    numbers and their records are concatenated.

    :param session: Active scan session.
    :param device: Device hosting the file.
    :param file_id: The File object.
    :param chunk_size: Octets (or records) per request; defaults to
        :attr:`ScanConfig.chunk_size`.
    :returns: The file contents.
    :raises ValueError: If a chunk before end-of-file comes back short.
    """
    chunk = chunk_size or session.config.chunk_size
    size, method = await _file_layout(session, device, file_id)
    logger.debug(
        "read_file %s on device %s: %d octets, %s", file_id, device.instance, size, method.name
    )

    buf = bytearray()
    offset = 0
    while offset < size:
        count = min(chunk, size - offset)
        if method == FileAccessMethod.RECORD_ACCESS:
            access = RecordReadAccess(file_start_record=offset, requested_record_count=count)
        else:
            access = StreamReadAccess(file_start_position=offset, requested_octet_count=count)
        ack = await session.client.atomic_read_file(device.address, file_id, access)
        result = ack.access_method
        if isinstance(result, RecordReadACK):
            received = result.returned_record_count
            buf.extend(b"".join(result.file_record_data))
        else:
            received = len(result.file_data)
            buf.extend(result.file_data)
        if ack.end_of_file:
            break
        if received < count:
            msg = f"short read of {file_id} at {offset}: asked for {count}, got {received}"
            raise ValueError(msg)
        offset += chunk
    return bytes(buf)


@contextlib.asynccontextmanager
async def backup_mode(
    session: ScanSession, device: RemoteDevice, password: str | None
) -> AsyncIterator[None]:
    """Hold *device* in backup mode for the duration of the block.

    END_BACKUP is sent exactly once on exit, even when START_BACKUP itself
    failed.  A failing END_BACKUP is logged and does not mask the outcome
    of the block.
    """
    try:
        logger.info("start backup on device %s", device.instance)
        await session.client.reinitialize_device(
            device.address, ReinitializedState.START_BACKUP, password=password
        )
        yield
    finally:
        try:
            await session.client.reinitialize_device(
                device.address, ReinitializedState.END_BACKUP, password=password
            )
        except Exception:
            logger.warning("END_BACKUP failed on device %s", device.instance, exc_info=True)
        else:
            logger.info("end backup on device %s", device.instance)


async def _configuration_files(
    session: ScanSession, device: RemoteDevice
) -> list[ObjectIdentifier]:
    ack = await session.client.read_property(
        device.address, device.object_identifier, PropertyIdentifier.CONFIGURATION_FILES
    )
    values = decode_all_application_values(ack.property_value)
    return [v for v in values if isinstance(v, ObjectIdentifier)]


async def backup(
    session: ScanSession, device: RemoteDevice, password: str | None
) -> list[bytes] | str:
    """Download every configuration file of *device*.

    All files are read before backup mode is left.

    :returns: File contents in ``configuration-files`` order, or
        ``"error: <message>"`` if any step failed.
    """
    try:
        async with backup_mode(session, device, password):
            file_ids = await _configuration_files(session, device)
            logger.debug("device %s has %d configuration file(s)", device.instance, len(file_ids))
            return [await read_file(session, device, file_id) for file_id in file_ids]
    except Exception as exc:
        logger.warning("backup of device %s failed: %s", device.instance, exc)
        return f"error: {exc}"


def encode_files(files: Sequence[bytes]) -> list[str]:
    """Base64 text of each file, for the report."""
    return [base64.b64encode(data).decode("ascii") for data in files]
