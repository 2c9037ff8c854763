"""Scan sessions: one local BACnet endpoint per scan."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bac_py.app.application import BACnetApplication
from bac_py.app.client import BACnetClient

from bacnet_scan.config import ScanConfig
from bacnet_scan.errors import EndpointError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanSession:
    """Explicit context handed to every scan operation.

    Bundles the client used for all requests with the configuration of the
    scan.  Sessions live exactly as long as the endpoint that backs them.
    """

    client: BACnetClient
    config: ScanConfig


@contextlib.asynccontextmanager
async def open_session(config: ScanConfig | None = None) -> AsyncIterator[ScanSession]:
    """Start a local endpoint, yield a session, and always stop the endpoint.

    :param config: Scan configuration; defaults to :class:`ScanConfig`.
    :raises EndpointError: If the endpoint cannot bind its socket.
    """
    config = config or ScanConfig()
    app = BACnetApplication(config.device_config())
    try:
        try:
            await app.start()
        except OSError as exc:
            raise EndpointError(config.interface, config.port, str(exc)) from exc
        logger.info(
            "endpoint up on %s:%s as device %s",
            config.interface,
            config.port,
            config.local_instance,
        )
        yield ScanSession(client=BACnetClient(app), config=config)
    finally:
        await app.stop()
        logger.debug("endpoint on %s:%s stopped", config.interface, config.port)
