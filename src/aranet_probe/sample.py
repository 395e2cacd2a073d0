"""Decode the Aranet4 current readings characteristic.

The payload is little-endian::

    offset  size  field
    0       2     co2 (ppm)
    2       2     temperature * 20 (degrees C)
    4       2     pressure * 10 (hPa)
    6       1     relative humidity (%)
    7       1     battery (%)

Newer firmware may append bytes after offset 7; they are ignored.
"""

from __future__ import annotations

import struct
from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence

from .const import MINIMUM_PAYLOAD_LENGTH
from .exception import TooShortError

_LAYOUT = struct.Struct("<HHHBB")

TEMPERATURE_SCALE = 20.0
PRESSURE_SCALE = 10.0


@dataclass(frozen=True, slots=True)
class Sample:
    """A single decoded measurement."""

    co2: int
    temp: float
    pressure: float
    humidity: int
    battery: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def decode(payload: bytes | bytearray | Sequence[int]) -> Sample:
    """Decode a raw characteristic value into a :class:`Sample`.

    Raises:
        TooShortError: if ``payload`` holds fewer than 8 bytes.
    """
    if len(payload) < MINIMUM_PAYLOAD_LENGTH:
        raise TooShortError(MINIMUM_PAYLOAD_LENGTH, len(payload))

    co2, raw_temp, raw_pressure, humidity, battery = _LAYOUT.unpack(
        bytes(payload[:MINIMUM_PAYLOAD_LENGTH])
    )
    return Sample(
        co2=co2,
        temp=raw_temp / TEMPERATURE_SCALE,
        pressure=raw_pressure / PRESSURE_SCALE,
        humidity=humidity,
        battery=battery,
    )


def encode_sample(sample: Sample) -> bytes:
    """Pack a sample into the 8 byte wire layout.

    Temperature and pressure are rounded to the nearest representable step.
    """
    try:
        return _LAYOUT.pack(
            sample.co2,
            round(sample.temp * TEMPERATURE_SCALE),
            round(sample.pressure * PRESSURE_SCALE),
            sample.humidity,
            sample.battery,
        )
    except struct.error as exc:
        raise ValueError(f"Sample out of range: {sample}") from exc
