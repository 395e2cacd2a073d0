"""Module defining the adapter interface the probe pipeline drives."""

from __future__ import annotations

import abc
import uuid
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, AsyncGenerator, Iterable, Sequence


def normalize_uuid(value: str | uuid.UUID) -> str:
    """Return the lower-case dashed 128-bit form of ``value``."""
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(uuid.UUID(value))


@dataclass(frozen=True, slots=True)
class DiscoveredDevice:
    """A device seen while scanning, before any connection is made."""

    address: str
    name: str | None = None
    rssi: int | None = None
    service_uuids: tuple[str, ...] = ()
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or self.address

    def advertises_any(self, service_uuids: Iterable[str]) -> bool:
        """Return True if one of ``service_uuids`` is advertised."""
        wanted = {normalize_uuid(u) for u in service_uuids}
        if not wanted:
            return True
        return any(normalize_uuid(u) in wanted for u in self.service_uuids)


class BaseConnection(ABC):
    """A live GATT session with one device."""

    def __init__(self, device: DiscoveredDevice) -> None:
        """Bind the session to the device it was opened for."""
        self.device = device

    @property
    @abc.abstractmethod
    def is_connected(self) -> bool:
        """Return True while the session is established."""

    @abc.abstractmethod
    async def discover_services(self) -> Sequence[Any]:
        """Return the GATT services of the device in discovery order."""

    @abc.abstractmethod
    async def read(self, characteristic: Any) -> bytes:
        """Read the value of ``characteristic``."""

    @abc.abstractmethod
    async def disconnect(self) -> None:
        """Tear the session down."""


class BaseAdapter(ABC):
    """A Bluetooth adapter able to scan and open connections."""

    name: str | None = None

    @abc.abstractmethod
    async def wait_available(self) -> None:
        """Return once the adapter can scan.

        Raises:
            AdapterUnavailableError: when no usable adapter is present.
        """

    @abc.abstractmethod
    def scan(
        self, service_uuids: Sequence[str]
    ) -> AsyncContextManager[AsyncGenerator[DiscoveredDevice, None]]:
        """Scan for advertisements until the returned context exits.

        The context yields an async generator of advertisements; the scan is
        stopped when the context exits however it exits.
        """

    @abc.abstractmethod
    async def connect(self, device: DiscoveredDevice) -> BaseConnection:
        """Connect to ``device``.

        Raises:
            ConnectRefusedError: when the device refuses the connection.
            ConnectTimeoutError: when the attempt times out.
        """
