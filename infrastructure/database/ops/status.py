from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Any, Optional

from app.domain.exceptions import NotFoundError
from app.utils.time import coerce_datetime, storage_timestamp

logger = logging.getLogger(__name__)

_MIN_ADVANCE = timedelta(microseconds=1)


class StatusOperations:
    """Authoritative pump status, one row per device."""

    def _write_status(
        self,
        db: sqlite3.Connection,
        device_id: str,
        pump_status: bool,
        automatic_mode: bool,
        at: datetime,
    ) -> tuple[dict[str, Any], bool]:
        """Upsert inside an open transaction; ``updated_at`` always moves forward."""
        existing = db.execute("SELECT updated_at FROM DeviceStatus WHERE device_id = ?", (device_id,)).fetchone()
        if existing is not None:
            previous = coerce_datetime(existing["updated_at"])
            if previous is not None and at <= previous:
                at = previous + _MIN_ADVANCE
        db.execute(
            """
            INSERT INTO DeviceStatus (device_id, pump_status, automatic_mode, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(device_id) DO UPDATE SET
                pump_status = excluded.pump_status,
                automatic_mode = excluded.automatic_mode,
                updated_at = excluded.updated_at
            """,
            (device_id, int(pump_status), int(automatic_mode), storage_timestamp(at)),
        )
        row = db.execute("SELECT * FROM DeviceStatus WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row), existing is None

    def upsert_status(
        self,
        device_id: str,
        pump_status: bool,
        automatic_mode: bool,
        at: datetime,
    ) -> tuple[dict[str, Any], bool]:
        """Write status for a device. Returns the row and whether it was inserted."""
        with self.transaction("write_status") as db:
            self.insert_device_if_missing(device_id)
            return self._write_status(db, device_id, pump_status, automatic_mode, at)

    def apply_command_row(self, command_id: str, at: datetime) -> Optional[tuple[dict[str, Any], dict[str, Any], bool]]:
        """
        Mark a command executed and write its intent as the device status.

        Returns ``(command_row, status_row, inserted)``, or None when the
        command was already executed.

        Raises:
            NotFoundError: unknown command id
            ConflictError: an older command for the same device is still pending
        """
        with self.transaction("apply_command") as db:
            command = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
            if command is None:
                raise NotFoundError(f"Unknown command {command_id}", detail={"command_id": command_id})
            if command["executed"]:
                return None

            self.ensure_no_older_pending(db, command)

            db.execute(
                "UPDATE ControlCommands SET executed = 1, executed_at = ? WHERE id = ?",
                (storage_timestamp(at), command_id),
            )
            status_row, inserted = self._write_status(
                db,
                command["device_id"],
                bool(command["pump_control"]),
                bool(command["automatic_mode"]),
                at,
            )
            command_row = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
        return dict(command_row), status_row, inserted

    def get_status_row(self, device_id: str) -> Optional[dict[str, Any]]:
        with self.connection("get_status") as db:
            row = db.execute("SELECT * FROM DeviceStatus WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row) if row else None
