"""Runtime configuration for a probe run.

Values come from command line options, then ``ARANET_PROBE_*`` environment
variables, then the defaults in :mod:`aranet_probe.const`.
"""

from __future__ import annotations

import logging
import os
import re
import uuid
from datetime import timedelta
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .const import (
    ARANET_CO2_MEASUREMENT_CHAR_UUID,
    ARANET_LOCAL_NAME_PREFIX,
    ARANET_SERVICE_UUID,
    DEFAULT_SCAN_LENGTH,
    ProbeMode,
    SensorIdentity,
)
from .exception import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "ARANET_PROBE_"

# Nanoseconds per unit, largest unit first; format_duration relies on this order.
_UNITS: dict[str, int] = {
    "w": 604_800_000_000_000,
    "d": 86_400_000_000_000,
    "h": 3_600_000_000_000,
    "m": 60_000_000_000,
    "s": 1_000_000_000,
    "ms": 1_000_000,
    "us": 1_000,
    "ns": 1,
}
_NANOS_PER_MICRO = _UNITS["us"]
_DURATION_PART = re.compile(r"(\d+)\s*(ns|us|ms|s|m|h|d|w)")


def parse_duration(text: str) -> timedelta:
    """Parse a human readable duration such as ``10s``, ``2m`` or ``1m30s``.

    ``timedelta`` holds microseconds, so nanoseconds are rounded.

    Raises:
        ConfigError: if ``text`` is malformed or the duration is zero.
    """
    value = text.strip().lower()
    if not value:
        raise ConfigError("empty duration")
    nanos = 0
    position = 0
    for match in _DURATION_PART.finditer(value):
        if match.start() != position and value[position : match.start()].strip():
            break
        nanos += int(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()
    if position != len(value) or position == 0:
        raise ConfigError(
            f"invalid duration '{text}'; expected e.g. 10s, 2m, 1m30s or 500ms"
        )
    micros = (nanos + _NANOS_PER_MICRO // 2) // _NANOS_PER_MICRO
    total = timedelta(microseconds=micros)
    if total <= timedelta():
        raise ConfigError(f"duration '{text}' must be greater than zero")
    return total


def format_duration(duration: timedelta) -> str:
    """Render ``duration`` in the syntax accepted by :func:`parse_duration`."""
    nanos = (duration // timedelta(microseconds=1)) * _NANOS_PER_MICRO
    if nanos <= 0:
        return "0s"
    parts: list[str] = []
    for unit, step in _UNITS.items():
        count, nanos = divmod(nanos, step)
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts)


def get_env(name: str, default: str | None = None) -> str | None:
    """Return ``ARANET_PROBE_<name>`` from the environment, or ``default``."""
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return default
    return value


class ProbeSettings(BaseModel):
    """Validated settings for one probe run."""

    model_config = ConfigDict(frozen=True)

    scan_length: timedelta = DEFAULT_SCAN_LENGTH
    mode: ProbeMode = ProbeMode.FIRST
    service_uuid: str = ARANET_SERVICE_UUID
    characteristic_uuid: str = ARANET_CO2_MEASUREMENT_CHAR_UUID
    name_prefix: str | None = ARANET_LOCAL_NAME_PREFIX
    adapter: str | None = None
    log_level: str = "INFO"

    @field_validator("scan_length", mode="before")
    @classmethod
    def _parse_scan_length(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return parse_duration(value)
            except ConfigError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @field_validator("scan_length")
    @classmethod
    def _positive_scan_length(cls, value: timedelta) -> timedelta:
        if value <= timedelta():
            raise ValueError("scan length must be greater than zero")
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("service_uuid", "characteristic_uuid", mode="before")
    @classmethod
    def _normalize_uuid(cls, value: Any) -> str:
        try:
            return str(uuid.UUID(str(value)))
        except ValueError as exc:
            raise ValueError(f"invalid UUID '{value}'") from exc

    @field_validator("name_prefix", "adapter", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level '{value}'")
        return level

    @property
    def identity(self) -> SensorIdentity:
        return SensorIdentity(
            service_uuid=self.service_uuid,
            characteristic_uuid=self.characteristic_uuid,
            name_prefix=self.name_prefix,
        )

    def describe(self) -> str:
        """Return a one line summary for the start banner."""
        return (
            f"scan_length={format_duration(self.scan_length)} "
            f"mode={self.mode.value} service={self.service_uuid} "
            f"characteristic={self.characteristic_uuid} "
            f"name_prefix={self.name_prefix!r} "
            f"adapter={self.adapter or 'default'}"
        )


_ENV_FIELDS = {
    "scan_length": "SCAN_LENGTH",
    "mode": "MODE",
    "service_uuid": "SERVICE_UUID",
    "characteristic_uuid": "CHARACTERISTIC_UUID",
    "name_prefix": "NAME_PREFIX",
    "adapter": "ADAPTER",
    "log_level": "LOG_LEVEL",
}


def load_settings(overrides: Mapping[str, Any] | None = None) -> ProbeSettings:
    """Build settings from environment variables and explicit overrides.

    ``None`` values in ``overrides`` mean "not given" and fall through to
    the environment.

    Raises:
        ConfigError: if any value fails validation.
    """
    values: dict[str, Any] = {}
    for field_name, env_name in _ENV_FIELDS.items():
        raw = get_env(env_name)
        if raw is not None:
            values[field_name] = raw
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    try:
        return ProbeSettings(**values)
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(messages) from exc
