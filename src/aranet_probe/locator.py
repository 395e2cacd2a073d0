"""Find the measurement characteristic in a discovered GATT tree."""

from __future__ import annotations

from typing import Any, Iterable

from .adapter.base_adapter import normalize_uuid
from .exception import CharacteristicNotFoundError, ServiceNotFoundError

READ_PROPERTY = "read"


def _is_readable(characteristic: Any) -> bool:
    return READ_PROPERTY in getattr(characteristic, "properties", ())


def locate(
    services: Iterable[Any], target_service: str, target_characteristic: str
) -> Any:
    """Return the first readable ``target_characteristic`` of ``target_service``.

    Only the first service matching ``target_service`` is searched, in
    discovery order.

    Raises:
        ServiceNotFoundError: no service matches ``target_service``.
        CharacteristicNotFoundError: the service has no readable
            characteristic matching ``target_characteristic``.
    """
    service_uuid = normalize_uuid(target_service)
    characteristic_uuid = normalize_uuid(target_characteristic)

    for service in services:
        if normalize_uuid(service.uuid) != service_uuid:
            continue
        for characteristic in service.characteristics:
            if normalize_uuid(
                characteristic.uuid
            ) == characteristic_uuid and _is_readable(characteristic):
                return characteristic
        raise CharacteristicNotFoundError(
            f"Service {service_uuid} has no readable characteristic "
            f"{characteristic_uuid}"
        )
    raise ServiceNotFoundError(f"Service {service_uuid} not found")
