"""Exceptions module."""

from __future__ import annotations


class ProbeError(Exception):
    """Base class for all probe errors."""


class ConfigError(ProbeError):
    """Raised when a configuration value cannot be parsed."""


class AdapterError(ProbeError):
    """Raised when the Bluetooth adapter cannot be used."""


class AdapterUnavailableError(AdapterError):
    """Raised when no Bluetooth adapter is present or powered."""


class ConnectError(ProbeError):
    """Raised when a device cannot be connected to."""


class ConnectRefusedError(ConnectError):
    """Raised when the device rejects or drops the connection attempt."""


class ConnectTimeoutError(ConnectError):
    """Raised when the connection attempt times out."""


class DiscoveryFailedError(ConnectError):
    """Raised when GATT service discovery fails on a connected device."""


class NotFoundError(ProbeError):
    """Raised when the target GATT attribute is absent."""


class ServiceNotFoundError(NotFoundError):
    """Raised when the target service is not offered by the device."""


class CharacteristicNotFoundError(NotFoundError):
    """Raised when the target service has no readable target characteristic."""


class ReadError(ProbeError):
    """Raised when reading a characteristic fails."""


class DecodeError(ProbeError):
    """Raised when a payload cannot be decoded into a sample."""


class TooShortError(DecodeError):
    """Raised when a payload has fewer bytes than the layout requires."""

    def __init__(self, required: int, actual: int) -> None:
        """Record the required and actual payload lengths."""
        super().__init__(
            f"response is too short; needs to have at least {required} elements"
        )
        self.required = required
        self.actual = actual
