"""Connect to a discovered device and discover its GATT services."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence, Tuple

from .adapter.base_adapter import BaseAdapter, BaseConnection, DiscoveredDevice
from .exception import ConnectError, DiscoveryFailedError

logger = logging.getLogger(__name__)

Session = Tuple[BaseConnection, Sequence[Any]]


async def disconnect(connection: BaseConnection) -> None:
    """Disconnect ``connection``, logging rather than raising on failure."""
    name = connection.device.display_name
    logger.debug("%s: Disconnecting", name)
    try:
        await connection.disconnect()
    except Exception:
        logger.warning("%s: Failed to disconnect", name, exc_info=True)
        return
    logger.info("%s: Disconnected", name)


async def connect_and_discover(
    adapter: BaseAdapter, device: DiscoveredDevice
) -> Session:
    """Connect to ``device`` and return the connection with its services.

    Raises:
        ConnectRefusedError, ConnectTimeoutError: the connection failed.
        DiscoveryFailedError: service discovery failed; the connection has
            been closed before this is raised.
    """
    name = device.display_name
    logger.info("%s: Connecting; RSSI: %s", name, device.rssi)
    try:
        connection = await adapter.connect(device)
    except ConnectError as ex:
        logger.debug("%s: Connection failed: %s", name, ex)
        raise
    logger.info("%s: Connected", name)

    try:
        services = await connection.discover_services()
    except Exception as ex:
        logger.debug("%s: Service discovery failed: %s", name, ex)
        await disconnect(connection)
        if isinstance(ex, DiscoveryFailedError):
            raise
        raise DiscoveryFailedError(f"{name}: service discovery failed") from ex

    logger.debug("%s: Discovered %d services", name, len(services))
    for service in services:
        logger.debug("%s: Service %s", name, service.uuid)
        for characteristic in getattr(service, "characteristics", ()):
            logger.debug(
                "%s:   Characteristic %s %s",
                name,
                characteristic.uuid,
                list(getattr(characteristic, "properties", ())),
            )
    return connection, services


@asynccontextmanager
async def device_session(
    adapter: BaseAdapter, device: DiscoveredDevice
) -> AsyncIterator[Session]:
    """Connect to a device and ensure it is disconnected afterwards."""
    connection, services = await connect_and_discover(adapter, device)
    try:
        yield connection, services
    finally:
        await disconnect(connection)
