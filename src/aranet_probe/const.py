"""BLE identities and defaults used by Aranet4 sensors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

ARANET_SERVICE_UUID = "f0cd1400-95da-4f4b-9ac8-aa55d312af0c"
ARANET_CO2_MEASUREMENT_CHAR_UUID = "f0cd1503-95da-4f4b-9ac8-aa55d312af0c"
ARANET_LOCAL_NAME_PREFIX = "Aranet4"

DEFAULT_SCAN_LENGTH = timedelta(seconds=10)
MINIMUM_PAYLOAD_LENGTH = 8


class ProbeMode(str, Enum):
    """How many discovered devices a run processes."""

    FIRST = "first"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class SensorIdentity:
    """Service, characteristic and advertised name of a sensor model."""

    service_uuid: str = ARANET_SERVICE_UUID
    characteristic_uuid: str = ARANET_CO2_MEASUREMENT_CHAR_UUID
    name_prefix: str | None = ARANET_LOCAL_NAME_PREFIX


ARANET4 = SensorIdentity()
