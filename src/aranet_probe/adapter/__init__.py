"""Bluetooth adapter backends."""

from .base_adapter import BaseAdapter, BaseConnection, DiscoveredDevice

__all__ = ["BaseAdapter", "BaseConnection", "DiscoveredDevice", "get_adapter"]


def get_adapter(name: str | None = None) -> BaseAdapter:
    """Return the radio backed adapter, optionally bound to ``name`` (e.g. hci1)."""
    from .bleak_adapter import BleakAdapter

    return BleakAdapter(name)
