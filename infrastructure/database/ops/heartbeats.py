from __future__ import annotations

from typing import Any, Optional


class HeartbeatOperations:
    """Latest-wins heartbeat rows, one per device."""

    def upsert_heartbeat(self, device_id: str, last_seen: str, status: str) -> tuple[dict[str, Any], bool]:
        """Overwrite the device's heartbeat. Returns the row and whether it was inserted."""
        with self.transaction("record_heartbeat") as db:
            self.insert_device_if_missing(device_id)
            existed = (
                db.execute("SELECT 1 FROM DeviceHeartbeats WHERE device_id = ?", (device_id,)).fetchone()
                is not None
            )
            db.execute(
                """
                INSERT INTO DeviceHeartbeats (device_id, last_seen, status)
                VALUES (?, ?, ?)
                ON CONFLICT(device_id) DO UPDATE SET
                    last_seen = excluded.last_seen,
                    status = excluded.status
                """,
                (device_id, last_seen, status),
            )
            row = db.execute("SELECT * FROM DeviceHeartbeats WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row), not existed

    def get_heartbeat_row(self, device_id: str) -> Optional[dict[str, Any]]:
        with self.connection("get_heartbeat") as db:
            row = db.execute("SELECT * FROM DeviceHeartbeats WHERE device_id = ?", (device_id,)).fetchone()
        return dict(row) if row else None
