from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from app.utils.time import storage_timestamp, utc_now

logger = logging.getLogger(__name__)


class DeviceOperations:
    """Device registry helpers shared across database handlers."""

    def insert_device_if_missing(self, device_id: str) -> bool:
        """Create a bare Devices row for ``device_id``. Returns True when created.

        Joins the caller's transaction when one is open.
        """
        with self.transaction("ensure_device") as db:
            cursor = db.execute(
                "INSERT OR IGNORE INTO Devices (device_id, created_at) VALUES (?, ?)",
                (device_id, storage_timestamp(utc_now())),
            )
            created = cursor.rowcount == 1
        if created:
            logger.info("Registered device %s on first contact", device_id)
        return created

    def upsert_device(
        self,
        device_id: str,
        *,
        display_name: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> tuple[dict[str, Any], bool]:
        """Insert or refresh a device; ``None`` fields keep their stored value."""
        with self.transaction("register_device") as db:
            existing = db.execute("SELECT 1 FROM Devices WHERE device_id = ?", (device_id,)).fetchone()
            if existing is None:
                db.execute(
                    """
                    INSERT INTO Devices (device_id, display_name, owner_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (device_id, display_name, owner_id, storage_timestamp(utc_now())),
                )
            else:
                db.execute(
                    """
                    UPDATE Devices
                    SET display_name = COALESCE(?, display_name),
                        owner_id = COALESCE(?, owner_id)
                    WHERE device_id = ?
                    """,
                    (display_name, owner_id, device_id),
                )
            row = db.execute("SELECT * FROM Devices WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row), existing is None

    def get_device_row(self, device_id: str) -> Optional[dict[str, Any]]:
        with self.connection("get_device") as db:
            row = db.execute("SELECT * FROM Devices WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row) if row else None

    def list_device_rows(self) -> list[dict[str, Any]]:
        with self.connection("list_devices") as db:
            rows = db.execute("SELECT * FROM Devices ORDER BY created_at ASC, device_id ASC").fetchall()
        return [dict(row) for row in rows]

    def device_exists(self, db: sqlite3.Connection, device_id: str) -> bool:
        return db.execute("SELECT 1 FROM Devices WHERE device_id = ?", (device_id,)).fetchone() is not None
