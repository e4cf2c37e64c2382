"""
Sensor Reading Value Object
============================
Immutable value object representing a soil moisture reading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.moisture import classify
from app.enums.device import MoistureBand


@dataclass(frozen=True)
class SensorReading:
    """
    Immutable sensor reading value object.
    Represents a single point-in-time reading from the moisture probe.
    """

    id: int
    device_id: str
    timestamp: datetime
    moisture_percentage: float
    moisture_digital: bool

    @property
    def band(self) -> MoistureBand:
        return classify(self.moisture_percentage)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "timestamp": self.timestamp.isoformat(),
            "moisture_percentage": self.moisture_percentage,
            "moisture_digital": self.moisture_digital,
        }


@dataclass(frozen=True)
class ReadingHistory:
    """
    One bounded slice of a device's reading history, oldest first.

    When the requested range holds more rows than the cap, the newest rows are
    kept and ``truncated`` is set; page further back by ending the next query
    at ``oldest_timestamp``.
    """

    device_id: str
    readings: tuple[SensorReading, ...]
    truncated: bool = False

    @property
    def oldest_timestamp(self) -> datetime | None:
        return self.readings[0].timestamp if self.readings else None

    def to_dict(self) -> dict[str, Any]:
        oldest = self.oldest_timestamp
        return {
            "device_id": self.device_id,
            "readings": [r.to_dict() for r in self.readings],
            "count": len(self.readings),
            "truncated": self.truncated,
            "oldest_ts": oldest.isoformat() if oldest else None,
        }
