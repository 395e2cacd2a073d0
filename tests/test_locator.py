"""Tests for finding the measurement characteristic in a GATT tree."""

import pytest
from fakes import FakeCharacteristic, FakeService, aranet_services

from aranet_probe.const import ARANET_CO2_MEASUREMENT_CHAR_UUID, ARANET_SERVICE_UUID
from aranet_probe.exception import (
    CharacteristicNotFoundError,
    NotFoundError,
    ServiceNotFoundError,
)
from aranet_probe.locator import locate

OTHER_SERVICE = "0000180f-0000-1000-8000-00805f9b34fb"


def test_locate_finds_readable_characteristic():
    """The measurement characteristic is returned from the Aranet service."""
    found = locate(
        aranet_services(), ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID
    )
    assert found.uuid == ARANET_CO2_MEASUREMENT_CHAR_UUID


def test_locate_compares_uuids_case_insensitively():
    """Upper-case UUIDs from some backends still match."""
    services = [
        FakeService(
            ARANET_SERVICE_UUID.upper(),
            [FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID.upper())],
        )
    ]
    found = locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)
    assert found is services[0].characteristics[0]


def test_locate_service_present_characteristic_missing():
    """A matching service without the characteristic is a characteristic miss."""
    services = [
        FakeService(
            ARANET_SERVICE_UUID,
            [FakeCharacteristic("f0cd1401-95da-4f4b-9ac8-aa55d312af0c")],
        )
    ]
    with pytest.raises(CharacteristicNotFoundError):
        locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)


def test_locate_service_absent():
    """No matching service at all is a service miss."""
    services = [FakeService(OTHER_SERVICE, [FakeCharacteristic(OTHER_SERVICE)])]
    with pytest.raises(ServiceNotFoundError):
        locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)


def test_locate_empty_tree_is_service_miss():
    """An empty service list reports the service as missing."""
    with pytest.raises(NotFoundError) as excinfo:
        locate([], ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)
    assert isinstance(excinfo.value, ServiceNotFoundError)


def test_locate_skips_characteristic_without_read():
    """A matching characteristic that cannot be read does not count."""
    services = [
        FakeService(
            ARANET_SERVICE_UUID,
            [FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID, ["notify"])],
        )
    ]
    with pytest.raises(CharacteristicNotFoundError):
        locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)


def test_locate_returns_first_readable_match_in_discovery_order():
    """When duplicates exist the first readable one wins."""
    unreadable = FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID, ["write"])
    first = FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID, ["read"])
    second = FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID, ["read", "notify"])
    services = [FakeService(ARANET_SERVICE_UUID, [unreadable, first, second])]

    found = locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)
    assert found is first


def test_locate_only_searches_first_matching_service():
    """A later duplicate service is not searched."""
    services = [
        FakeService(ARANET_SERVICE_UUID, []),
        FakeService(
            ARANET_SERVICE_UUID,
            [FakeCharacteristic(ARANET_CO2_MEASUREMENT_CHAR_UUID)],
        ),
    ]
    with pytest.raises(CharacteristicNotFoundError):
        locate(services, ARANET_SERVICE_UUID, ARANET_CO2_MEASUREMENT_CHAR_UUID)
