from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ReadingOperations:
    """Append-only soil moisture log."""

    def insert_reading(
        self,
        *,
        device_id: str,
        timestamp: str,
        moisture_percentage: float,
        moisture_digital: bool,
    ) -> dict[str, Any]:
        with self.transaction("append_reading") as db:
            self.insert_device_if_missing(device_id)
            cursor = db.execute(
                """
                INSERT INTO SensorReadings (device_id, timestamp, moisture_percentage, moisture_digital)
                VALUES (?, ?, ?, ?)
                """,
                (device_id, timestamp, moisture_percentage, int(moisture_digital)),
            )
            row = db.execute("SELECT * FROM SensorReadings WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return dict(row)

    def get_latest_reading(self, device_id: str) -> Optional[dict[str, Any]]:
        with self.connection("latest_reading") as db:
            row = db.execute(
                """
                SELECT * FROM SensorReadings
                WHERE device_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT 1
                """,
                (device_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_readings_between(
        self,
        device_id: str,
        start: str,
        end: str,
        limit: int,
    ) -> tuple[list[dict[str, Any]], bool]:
        """Newest ``limit`` readings with ``start <= timestamp <= end``, oldest first.

        The flag is True when the range held more rows than were returned.
        """
        with self.connection("reading_history") as db:
            rows = db.execute(
                """
                SELECT * FROM SensorReadings
                WHERE device_id = ? AND timestamp >= ? AND timestamp <= ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (device_id, start, end, limit + 1),
            ).fetchall()
        truncated = len(rows) > limit
        return [dict(row) for row in reversed(rows[:limit])], truncated

    def count_readings(self, device_id: str) -> int:
        with self.connection("count_readings") as db:
            row = db.execute("SELECT COUNT(*) FROM SensorReadings WHERE device_id = ?", (device_id,)).fetchone()
        return int(row[0])
