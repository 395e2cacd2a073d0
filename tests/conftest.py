"""Pytest fixtures shared by the probe tests."""

from __future__ import annotations

import pytest
from fakes import FakeAdapter, FakeConnection, aranet_device

from aranet_probe.adapter.base_adapter import DiscoveredDevice


@pytest.fixture
def device() -> DiscoveredDevice:
    """An advertising Aranet4."""
    return aranet_device()


@pytest.fixture
def connection(device: DiscoveredDevice) -> FakeConnection:
    """A healthy connection to ``device``."""
    return FakeConnection(device)


@pytest.fixture
def adapter(device: DiscoveredDevice, connection: FakeConnection) -> FakeAdapter:
    """An adapter that sees ``device`` and connects to it."""
    return FakeAdapter([device], {device.address: connection})
