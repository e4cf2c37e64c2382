from __future__ import annotations

from datetime import datetime
from typing import Any

from app.domain.reading import ReadingHistory, SensorReading
from app.utils.time import coerce_datetime, storage_timestamp
from infrastructure.database.ops.readings import ReadingOperations


def _to_reading(row: dict[str, Any]) -> SensorReading:
    return SensorReading(
        id=int(row["id"]),
        device_id=row["device_id"],
        timestamp=coerce_datetime(row["timestamp"]),
        moisture_percentage=float(row["moisture_percentage"]),
        moisture_digital=bool(row["moisture_digital"]),
    )


class ReadingRepository:
    """Facade over the append-only SensorReadings table."""

    def __init__(self, backend: ReadingOperations) -> None:
        self._backend = backend

    def append(
        self,
        device_id: str,
        *,
        timestamp: datetime,
        moisture_percentage: float,
        moisture_digital: bool,
    ) -> SensorReading:
        row = self._backend.insert_reading(
            device_id=device_id,
            timestamp=storage_timestamp(timestamp),
            moisture_percentage=moisture_percentage,
            moisture_digital=moisture_digital,
        )
        return _to_reading(row)

    def latest(self, device_id: str) -> SensorReading | None:
        row = self._backend.get_latest_reading(device_id)
        return _to_reading(row) if row else None

    def between(self, device_id: str, start: datetime, end: datetime, *, limit: int) -> ReadingHistory:
        rows, truncated = self._backend.get_readings_between(
            device_id,
            storage_timestamp(start),
            storage_timestamp(end),
            limit,
        )
        return ReadingHistory(device_id, tuple(_to_reading(row) for row in rows), truncated)

    def count(self, device_id: str) -> int:
        return self._backend.count_readings(device_id)
