"""Scan, connect, read and decode: one probe run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .adapter.base_adapter import BaseAdapter, DiscoveredDevice
from .config import ProbeSettings
from .connector import device_session
from .const import ProbeMode, SensorIdentity
from .exception import ConnectError, DecodeError, NotFoundError, ReadError
from .locator import locate
from .sample import Sample, decode
from .scanner import collect, find_first

logger = logging.getLogger(__name__)

# Errors that end the processing of one device but not the run.
DEVICE_ERRORS = (ConnectError, NotFoundError, ReadError, DecodeError)


@dataclass(slots=True)
class DeviceReading:
    """Outcome of probing a single device."""

    address: str
    name: str | None
    rssi: int | None
    sample: Sample | None = None
    raw_payload: bytes | None = None
    error: str | None = None
    error_kind: str | None = None

    @property
    def ok(self) -> bool:
        return self.sample is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "rssi": self.rssi,
            "sample": self.sample.as_dict() if self.sample else None,
            "raw_payload": (
                self.raw_payload.hex() if self.raw_payload is not None else None
            ),
            "error": self.error,
            "error_kind": self.error_kind,
        }


@dataclass(slots=True)
class ProbeReport:
    """Readings gathered during one run, in processing order."""

    readings: List[DeviceReading] = field(default_factory=list)

    @property
    def devices_found(self) -> bool:
        return bool(self.readings)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "devices_found": self.devices_found,
            "readings": [reading.as_dict() for reading in self.readings],
        }


async def read_sample(
    adapter: BaseAdapter, device: DiscoveredDevice, identity: SensorIdentity
) -> DeviceReading:
    """Connect to ``device``, read its measurement characteristic and decode it.

    The device is disconnected before this returns or raises.
    """
    name = device.display_name
    async with device_session(adapter, device) as (connection, services):
        characteristic = locate(
            services, identity.service_uuid, identity.characteristic_uuid
        )
        logger.debug("%s: Reading characteristic %s", name, characteristic.uuid)
        payload = bytes(await connection.read(characteristic))
        logger.debug("%s: response: %s", name, payload.hex())
        sample = decode(payload)
        logger.info(
            "%s: CO2 %d ppm, temperature %.2f C, pressure %.1f hPa, "
            "humidity %d %%, battery %d %%",
            name,
            sample.co2,
            sample.temp,
            sample.pressure,
            sample.humidity,
            sample.battery,
        )
    return DeviceReading(
        address=device.address,
        name=device.name,
        rssi=device.rssi,
        sample=sample,
        raw_payload=payload,
    )


async def probe_device(
    adapter: BaseAdapter, device: DiscoveredDevice, identity: SensorIdentity
) -> DeviceReading:
    """Probe one device, recording per-device failures instead of raising."""
    try:
        return await read_sample(adapter, device, identity)
    except DEVICE_ERRORS as ex:
        logger.error(
            "%s: %s: %s", device.display_name, type(ex).__name__, ex
        )
        return DeviceReading(
            address=device.address,
            name=device.name,
            rssi=device.rssi,
            error=str(ex),
            error_kind=type(ex).__name__,
        )


async def discover(
    adapter: BaseAdapter, settings: ProbeSettings
) -> list[DiscoveredDevice]:
    """Scan according to ``settings.mode`` and return the devices to probe."""
    identity = settings.identity
    service_filter = [identity.service_uuid]
    if settings.mode is ProbeMode.FIRST:
        device = await find_first(
            adapter, service_filter, settings.scan_length, identity.name_prefix
        )
        return [device] if device is not None else []
    return await collect(
        adapter, service_filter, settings.scan_length, identity.name_prefix
    )


async def run_probe(
    adapter: BaseAdapter, settings: ProbeSettings | None = None
) -> ProbeReport:
    """Run one scan and probe the discovered devices one after another.

    Raises:
        AdapterError: the adapter is missing or unusable.
    """
    settings = settings or ProbeSettings()
    devices = await discover(adapter, settings)
    report = ProbeReport()
    if not devices:
        logger.info("No devices found")
        return report
    for device in devices:
        report.readings.append(
            await probe_device(adapter, device, settings.identity)
        )
    return report
