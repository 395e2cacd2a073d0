"""Tests for connecting, discovering services and guaranteed disconnect."""

import asyncio
import logging

import pytest
from fakes import FakeAdapter, FakeConnection

from aranet_probe.connector import connect_and_discover, device_session
from aranet_probe.exception import (
    ConnectRefusedError,
    ConnectTimeoutError,
    DiscoveryFailedError,
)


def test_connect_and_discover_returns_services(adapter, device, connection):
    """A healthy device yields its connection and GATT tree."""
    conn, services = asyncio.run(connect_and_discover(adapter, device))

    assert conn is connection
    assert services == connection.services
    assert connection.disconnect_calls == 0


@pytest.mark.parametrize("error", [ConnectRefusedError, ConnectTimeoutError])
def test_connect_failure_propagates_without_disconnect(device, error):
    """Connect errors surface unchanged; nothing is torn down."""
    adapter = FakeAdapter([device], {device.address: error("nope")})

    with pytest.raises(error):
        asyncio.run(connect_and_discover(adapter, device))
    assert adapter.connect_calls == [device.address]


def test_discovery_failure_disconnects(device):
    """A failed discovery still closes the connection."""
    connection = FakeConnection(
        device, discovery_error=DiscoveryFailedError("gatt error")
    )
    adapter = FakeAdapter([device], {device.address: connection})

    with pytest.raises(DiscoveryFailedError):
        asyncio.run(connect_and_discover(adapter, device))
    assert connection.disconnect_calls == 1


def test_unexpected_discovery_error_is_wrapped(device):
    """Backend specific discovery errors become DiscoveryFailedError."""
    connection = FakeConnection(device, discovery_error=OSError("dbus gone"))
    adapter = FakeAdapter([device], {device.address: connection})

    with pytest.raises(DiscoveryFailedError) as excinfo:
        asyncio.run(connect_and_discover(adapter, device))
    assert isinstance(excinfo.value.__cause__, OSError)
    assert connection.disconnect_calls == 1


def test_device_session_disconnects_on_success(adapter, device, connection):
    """Leaving the session normally disconnects once."""

    async def run():
        async with device_session(adapter, device) as (conn, _services):
            assert conn.is_connected

    asyncio.run(run())
    assert connection.disconnect_calls == 1
    assert not connection.is_connected


def test_device_session_disconnects_on_error(adapter, device, connection):
    """Leaving the session by exception still disconnects."""

    async def run():
        async with device_session(adapter, device):
            raise ValueError("decode failed")

    with pytest.raises(ValueError):
        asyncio.run(run())
    assert connection.disconnect_calls == 1


def test_disconnect_failure_does_not_mask_original_error(device, caplog):
    """A failing disconnect is logged and the body's error wins."""
    connection = FakeConnection(device, disconnect_error=OSError("already gone"))
    adapter = FakeAdapter([device], {device.address: connection})

    async def run():
        async with device_session(adapter, device):
            raise KeyError("boom")

    with caplog.at_level(logging.WARNING):
        with pytest.raises(KeyError):
            asyncio.run(run())
    assert connection.disconnect_calls == 1
    assert "Failed to disconnect" in caplog.text
