from __future__ import annotations

from datetime import datetime
from typing import Any

from app.domain.command import ControlCommand
from app.utils.time import coerce_datetime, storage_timestamp
from infrastructure.database.ops.commands import CommandOperations


def to_command(row: dict[str, Any]) -> ControlCommand:
    return ControlCommand(
        id=row["id"],
        device_id=row["device_id"],
        pump_control=bool(row["pump_control"]),
        automatic_mode=bool(row["automatic_mode"]),
        issuer_id=row["issuer_id"],
        created_at=coerce_datetime(row["created_at"]),
        sequence=int(row["sequence"]),
        executed=bool(row["executed"]),
        executed_at=coerce_datetime(row["executed_at"]),
    )


class CommandRepository:
    """Facade over the ControlCommands queue."""

    def __init__(self, backend: CommandOperations) -> None:
        self._backend = backend

    def create(
        self,
        *,
        command_id: str,
        device_id: str,
        pump_control: bool,
        automatic_mode: bool,
        issuer_id: str,
        created_at: datetime,
    ) -> ControlCommand:
        row = self._backend.insert_command(
            command_id=command_id,
            device_id=device_id,
            pump_control=pump_control,
            automatic_mode=automatic_mode,
            issuer_id=issuer_id,
            created_at=storage_timestamp(created_at),
        )
        return to_command(row)

    def mark_executed(self, command_id: str, executed_at: datetime) -> tuple[ControlCommand, bool]:
        row, changed = self._backend.set_command_executed(command_id, storage_timestamp(executed_at))
        return to_command(row), changed

    def get(self, command_id: str) -> ControlCommand | None:
        row = self._backend.get_command_row(command_id)
        return to_command(row) if row else None

    def list_for_device(self, device_id: str, *, pending_only: bool = False, limit: int = 100) -> list[ControlCommand]:
        rows = self._backend.list_command_rows(device_id, pending_only=pending_only, limit=limit)
        return [to_command(row) for row in rows]

    def oldest_pending(self, device_id: str) -> ControlCommand | None:
        row = self._backend.get_oldest_pending_row(device_id)
        return to_command(row) if row else None

    def pending_created_before(self, device_id: str, cutoff: datetime) -> list[ControlCommand]:
        rows = self._backend.get_pending_created_before(device_id, storage_timestamp(cutoff))
        return [to_command(row) for row in rows]

    def count(self, device_id: str) -> int:
        return self._backend.count_commands(device_id)
