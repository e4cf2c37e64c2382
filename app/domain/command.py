"""
Control Command Value Object
============================
Admin-issued desired pump/mode intent awaiting device execution.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ControlCommand:
    """
    A queued intent. ``executed`` moves from False to True exactly once.

    ``sequence`` is assigned by the store on insert and gives every command
    of a device a total order independent of client clocks.
    """

    id: str
    device_id: str
    pump_control: bool
    automatic_mode: bool
    issuer_id: str
    created_at: datetime
    sequence: int
    executed: bool = False
    executed_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.executed

    def age_seconds(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "pump_control": self.pump_control,
            "automatic_mode": self.automatic_mode,
            "issuer_id": self.issuer_id,
            "created_at": self.created_at.isoformat(),
            "sequence": self.sequence,
            "executed": self.executed,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
        }
