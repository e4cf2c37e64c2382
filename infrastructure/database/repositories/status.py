from __future__ import annotations

from datetime import datetime
from typing import Any

from app.domain.command import ControlCommand
from app.domain.device import DeviceStatus
from app.utils.time import coerce_datetime
from infrastructure.database.ops.status import StatusOperations
from infrastructure.database.repositories.commands import to_command


def _to_status(row: dict[str, Any]) -> DeviceStatus:
    return DeviceStatus(
        device_id=row["device_id"],
        pump_status=bool(row["pump_status"]),
        automatic_mode=bool(row["automatic_mode"]),
        updated_at=coerce_datetime(row["updated_at"]),
    )


class StatusRepository:
    """Facade over the DeviceStatus table and the command execution step."""

    def __init__(self, backend: StatusOperations) -> None:
        self._backend = backend

    def get(self, device_id: str) -> DeviceStatus | None:
        row = self._backend.get_status_row(device_id)
        return _to_status(row) if row else None

    def write(self, device_id: str, *, pump_status: bool, automatic_mode: bool, at: datetime) -> tuple[DeviceStatus, bool]:
        row, inserted = self._backend.upsert_status(device_id, pump_status, automatic_mode, at)
        return _to_status(row), inserted

    def apply_command(self, command_id: str, *, at: datetime) -> tuple[ControlCommand, DeviceStatus, bool] | None:
        """Execute a command atomically; None when it had already been executed."""
        result = self._backend.apply_command_row(command_id, at)
        if result is None:
            return None
        command_row, status_row, inserted = result
        return to_command(command_row), _to_status(status_row), inserted
