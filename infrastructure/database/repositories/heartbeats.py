from __future__ import annotations

from datetime import datetime
from typing import Any

from app.domain.device import Heartbeat
from app.utils.time import coerce_datetime, storage_timestamp
from infrastructure.database.ops.heartbeats import HeartbeatOperations


def _to_heartbeat(row: dict[str, Any]) -> Heartbeat:
    return Heartbeat(
        device_id=row["device_id"],
        last_seen=coerce_datetime(row["last_seen"]),
        status=row["status"],
    )


class HeartbeatRepository:
    """Facade over DeviceHeartbeats (one overwritten row per device)."""

    def __init__(self, backend: HeartbeatOperations) -> None:
        self._backend = backend

    def record(self, device_id: str, *, last_seen: datetime, status: str) -> tuple[Heartbeat, bool]:
        row, inserted = self._backend.upsert_heartbeat(device_id, storage_timestamp(last_seen), status)
        return _to_heartbeat(row), inserted

    def get(self, device_id: str) -> Heartbeat | None:
        row = self._backend.get_heartbeat_row(device_id)
        return _to_heartbeat(row) if row else None
