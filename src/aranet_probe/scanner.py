"""Scan for advertising sensors within a bounded window."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from datetime import timedelta
from typing import AsyncIterator, Iterable

from .adapter.base_adapter import BaseAdapter, DiscoveredDevice, normalize_uuid

logger = logging.getLogger(__name__)


async def _next_advertisement(
    iterator: AsyncIterator[DiscoveredDevice],
) -> DiscoveredDevice:
    return await iterator.__anext__()


def matches(
    device: DiscoveredDevice,
    service_filter: Iterable[str],
    name_prefix: str | None = None,
) -> bool:
    """Return True if ``device`` advertises a wanted service and name."""
    if not device.advertises_any(service_filter):
        return False
    if name_prefix and not (device.name or "").startswith(name_prefix):
        return False
    return True


async def scan(
    adapter: BaseAdapter,
    service_filter: Iterable[str],
    window: timedelta,
    name_prefix: str | None = None,
) -> AsyncIterator[DiscoveredDevice]:
    """Yield each matching device once until ``window`` elapses.

    The adapter's scan is stopped when the window elapses, when the
    consumer stops iterating or when an error propagates.
    """
    wanted = [normalize_uuid(u) for u in service_filter]
    await adapter.wait_available()

    loop = asyncio.get_running_loop()
    deadline = loop.time() + window.total_seconds()
    seen: set[str] = set()

    logger.info("Starting scan for %s", wanted or "all services")
    async with adapter.scan(wanted) as advertisements, aclosing(
        advertisements
    ) as iterator:
        logger.info("Scan started")
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                device = await asyncio.wait_for(
                    _next_advertisement(iterator), timeout=remaining
                )
            except (asyncio.TimeoutError, StopAsyncIteration):
                break
            if device.address in seen:
                continue
            if not matches(device, wanted, name_prefix):
                logger.debug("Ignoring %s", device.display_name)
                continue
            seen.add(device.address)
            logger.info(
                "Found %s (%s); RSSI: %s dBm; services: %s",
                device.display_name,
                device.address,
                device.rssi,
                list(device.service_uuids),
            )
            yield device
    logger.info("Scan finished; %d matching devices", len(seen))


async def find_first(
    adapter: BaseAdapter,
    service_filter: Iterable[str],
    window: timedelta,
    name_prefix: str | None = None,
) -> DiscoveredDevice | None:
    """Return the first matching device, or None if the window elapses."""
    devices = scan(adapter, service_filter, window, name_prefix)
    try:
        async for device in devices:
            return device
    finally:
        await devices.aclose()
    return None


async def collect(
    adapter: BaseAdapter,
    service_filter: Iterable[str],
    window: timedelta,
    name_prefix: str | None = None,
) -> list[DiscoveredDevice]:
    """Return every matching device seen during ``window``."""
    return [
        device
        async for device in scan(adapter, service_filter, window, name_prefix)
    ]
