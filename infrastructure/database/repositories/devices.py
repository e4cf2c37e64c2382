from __future__ import annotations

from typing import Any

from app.domain.device import Device
from app.utils.time import coerce_datetime
from infrastructure.database.ops.devices import DeviceOperations


def _to_device(row: dict[str, Any]) -> Device:
    return Device(
        device_id=row["device_id"],
        display_name=row["display_name"] or row["device_id"],
        owner_id=row["owner_id"],
        created_at=coerce_datetime(row["created_at"]),
    )


class DeviceRepository:
    """Facade over the Devices registry table."""

    def __init__(self, backend: DeviceOperations) -> None:
        self._backend = backend

    def register(
        self,
        device_id: str,
        *,
        display_name: str | None = None,
        owner_id: str | None = None,
    ) -> tuple[Device, bool]:
        row, created = self._backend.upsert_device(device_id, display_name=display_name, owner_id=owner_id)
        return _to_device(row), created

    def ensure(self, device_id: str) -> bool:
        return self._backend.insert_device_if_missing(device_id)

    def get(self, device_id: str) -> Device | None:
        row = self._backend.get_device_row(device_id)
        return _to_device(row) if row else None

    def list_all(self) -> list[Device]:
        return [_to_device(row) for row in self._backend.list_device_rows()]
