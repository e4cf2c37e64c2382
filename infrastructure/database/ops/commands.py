from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from app.domain.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class CommandOperations:
    """Append-only control command queue. ``sequence`` defines FIFO order."""

    def insert_command(
        self,
        *,
        command_id: str,
        device_id: str,
        pump_control: bool,
        automatic_mode: bool,
        issuer_id: str,
        created_at: str,
    ) -> dict[str, Any]:
        with self.transaction("enqueue_command") as db:
            if not self.device_exists(db, device_id):
                raise NotFoundError(f"Unknown device {device_id}", detail={"device_id": device_id})
            db.execute(
                """
                INSERT INTO ControlCommands (
                    id, device_id, pump_control, automatic_mode, issuer_id, created_at, executed
                ) VALUES (?, ?, ?, ?, ?, ?, 0)
                """,
                (command_id, device_id, int(pump_control), int(automatic_mode), issuer_id, created_at),
            )
            row = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
        return dict(row)

    def ensure_no_older_pending(self, db: sqlite3.Connection, command: sqlite3.Row) -> None:
        """Raise ConflictError if an earlier command for the device is still pending."""
        older = db.execute(
            """
            SELECT id FROM ControlCommands
            WHERE device_id = ? AND executed = 0 AND sequence < ?
            ORDER BY sequence ASC
            LIMIT 1
            """,
            (command["device_id"], command["sequence"]),
        ).fetchone()
        if older is not None:
            raise ConflictError(
                f"Command {command['id']} cannot run before pending command {older['id']}",
                detail={"command_id": command["id"], "blocking_command_id": older["id"]},
            )

    def set_command_executed(self, command_id: str, executed_at: str) -> tuple[dict[str, Any], bool]:
        """Flip ``executed`` to true. Returns the row and whether it changed.

        Commands for one device are executed in ``sequence`` order only.
        """
        with self.transaction("mark_executed") as db:
            row = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
            if row is None:
                raise NotFoundError(f"Unknown command {command_id}", detail={"command_id": command_id})
            if row["executed"]:
                return dict(row), False
            self.ensure_no_older_pending(db, row)
            db.execute(
                "UPDATE ControlCommands SET executed = 1, executed_at = ? WHERE id = ?",
                (executed_at, command_id),
            )
            row = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
        return dict(row), True

    def get_command_row(self, command_id: str) -> Optional[dict[str, Any]]:
        with self.connection("get_command") as db:
            row = db.execute("SELECT * FROM ControlCommands WHERE id = ?", (command_id,)).fetchone()
        return dict(row) if row else None

    def list_command_rows(
        self,
        device_id: str,
        *,
        pending_only: bool = False,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Commands for a device in creation order."""
        query = "SELECT * FROM ControlCommands WHERE device_id = ?"
        if pending_only:
            query += " AND executed = 0"
        query += " ORDER BY sequence ASC LIMIT ?"
        with self.connection("list_commands") as db:
            rows = db.execute(query, (device_id, limit)).fetchall()
        return [dict(row) for row in rows]

    def get_oldest_pending_row(self, device_id: str) -> Optional[dict[str, Any]]:
        with self.connection("next_pending") as db:
            row = db.execute(
                """
                SELECT * FROM ControlCommands
                WHERE device_id = ? AND executed = 0
                ORDER BY sequence ASC
                LIMIT 1
                """,
                (device_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_pending_created_before(self, device_id: str, cutoff: str) -> list[dict[str, Any]]:
        with self.connection("stale_pending") as db:
            rows = db.execute(
                """
                SELECT * FROM ControlCommands
                WHERE device_id = ? AND executed = 0 AND created_at < ?
                ORDER BY sequence ASC
                """,
                (device_id, cutoff),
            ).fetchall()
        return [dict(row) for row in rows]

    def count_commands(self, device_id: str) -> int:
        with self.connection("count_commands") as db:
            row = db.execute("SELECT COUNT(*) FROM ControlCommands WHERE device_id = ?", (device_id,)).fetchone()
        return int(row[0])
