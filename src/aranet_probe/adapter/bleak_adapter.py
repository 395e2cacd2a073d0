"""Adapter implementation backed by bleak."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Sequence

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.backends.service import BleakGATTCharacteristic  # type: ignore
from bleak_retry_connector import BleakError  # type: ignore
from bleak_retry_connector import (
    BleakClientWithServiceCache,
    BleakNotFoundError,
    establish_connection,
)

from ..exception import (
    AdapterUnavailableError,
    ConnectRefusedError,
    ConnectTimeoutError,
    DiscoveryFailedError,
    ReadError,
)
from .base_adapter import BaseAdapter, BaseConnection, DiscoveredDevice

logger = logging.getLogger(__name__)

# Each failure is surfaced once; the caller decides what happens next.
CONNECT_ATTEMPTS = 1
AVAILABILITY_PROBE_SECONDS = 0.1


def _is_timeout(exc: BaseException) -> bool:
    return isinstance(exc, asyncio.TimeoutError) or isinstance(
        exc.__cause__, asyncio.TimeoutError
    )


def to_discovered_device(
    device: BLEDevice, advertisement_data: AdvertisementData
) -> DiscoveredDevice:
    """Convert a bleak advertisement into a :class:`DiscoveredDevice`."""
    return DiscoveredDevice(
        address=device.address,
        name=advertisement_data.local_name or device.name,
        rssi=advertisement_data.rssi,
        service_uuids=tuple(advertisement_data.service_uuids),
        handle=device,
    )


class BleakConnection(BaseConnection):
    """GATT session held by a :class:`BleakClientWithServiceCache`."""

    def __init__(
        self, device: DiscoveredDevice, client: BleakClientWithServiceCache
    ) -> None:
        """Wrap an already connected client."""
        super().__init__(device)
        self._client = client
        self._expected_disconnect = False

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    def _disconnected(self, client: BleakClientWithServiceCache) -> None:
        """Disconnected callback."""
        if self._expected_disconnect:
            logger.debug("%s: Disconnected from device", self.device.display_name)
            return
        logger.warning(
            "%s: Device unexpectedly disconnected; RSSI: %s",
            self.device.display_name,
            self.device.rssi,
        )

    async def discover_services(self) -> Sequence[Any]:
        try:
            services = list(self._client.services)
        except BleakError as ex:
            raise DiscoveryFailedError(
                f"{self.device.display_name}: service discovery failed: {ex}"
            ) from ex
        if not services:
            raise DiscoveryFailedError(
                f"{self.device.display_name}: device reported no services"
            )
        return services

    async def read(self, characteristic: BleakGATTCharacteristic) -> bytes:
        try:
            value = await self._client.read_gatt_char(characteristic)
        except (BleakError, asyncio.TimeoutError) as ex:
            raise ReadError(
                f"{self.device.display_name}: reading {characteristic.uuid} "
                f"failed: {ex}"
            ) from ex
        return bytes(value)

    async def disconnect(self) -> None:
        self._expected_disconnect = True
        await self._client.disconnect()


class BleakAdapter(BaseAdapter):
    """The host's Bluetooth adapter as seen through bleak."""

    def __init__(self, name: str | None = None) -> None:
        """Use adapter ``name`` (e.g. ``hci0``) or the backend default."""
        self.name = name

    def _scanner_kwargs(self) -> dict[str, Any]:
        if self.name:
            return {"adapter": self.name}
        return {}

    @staticmethod
    async def _stop_scanner(scanner: BleakScanner) -> None:
        """Stop ``scanner``, logging rather than raising on failure."""
        try:
            await scanner.stop()
        except (BleakError, OSError):
            logger.warning("Failed to stop scanner", exc_info=True)
            return
        logger.debug("Scan stopped")

    async def wait_available(self) -> None:
        scanner = BleakScanner(**self._scanner_kwargs())
        try:
            await scanner.start()
        except (BleakError, OSError) as ex:
            raise AdapterUnavailableError(
                f"Bluetooth adapter not found: {ex}"
            ) from ex
        try:
            await asyncio.sleep(AVAILABILITY_PROBE_SECONDS)
        finally:
            await self._stop_scanner(scanner)
        logger.debug("Adapter %s is available", self.name or "(default)")

    @asynccontextmanager
    async def scan(
        self, service_uuids: Sequence[str]
    ) -> AsyncIterator[AsyncGenerator[DiscoveredDevice, None]]:
        scanner = BleakScanner(
            service_uuids=list(service_uuids) or None,
            **self._scanner_kwargs(),
        )
        try:
            await scanner.start()
        except (BleakError, OSError) as ex:
            raise AdapterUnavailableError(
                f"Bluetooth adapter not found: {ex}"
            ) from ex
        try:
            yield self._advertisements(scanner)
        finally:
            await self._stop_scanner(scanner)

    @staticmethod
    async def _advertisements(
        scanner: BleakScanner,
    ) -> AsyncGenerator[DiscoveredDevice, None]:
        async for device, advertisement_data in scanner.advertisement_data():
            yield to_discovered_device(device, advertisement_data)

    async def connect(self, device: DiscoveredDevice) -> BaseConnection:
        ble_device = device.handle
        if ble_device is None:
            raise ConnectRefusedError(
                f"{device.display_name}: no BLE device handle to connect to"
            )
        connection: BleakConnection | None = None

        def _on_disconnect(client: BleakClientWithServiceCache) -> None:
            if connection is not None:
                connection._disconnected(client)

        try:
            client = await establish_connection(
                BleakClientWithServiceCache,
                ble_device,
                device.display_name,
                _on_disconnect,
                max_attempts=CONNECT_ATTEMPTS,
                use_services_cache=True,
                ble_device_callback=lambda: ble_device,
            )
        except (BleakError, asyncio.TimeoutError) as ex:
            if _is_timeout(ex):
                raise ConnectTimeoutError(
                    f"{device.display_name}: connection timed out"
                ) from ex
            if isinstance(ex, BleakNotFoundError):
                raise ConnectRefusedError(
                    f"{device.display_name}: device missing or out of range"
                ) from ex
            raise ConnectRefusedError(str(ex)) from ex
        connection = BleakConnection(device, client)
        return connection
