"""
Device Value Objects
====================
Immutable records for the device registry, liveness heartbeats and the
authoritative pump status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Device:
    """Identity anchor for readings, heartbeats, status and commands."""

    device_id: str
    display_name: str
    owner_id: str | None
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "display_name": self.display_name,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Heartbeat:
    """Latest liveness signal for a device (one logical row per device)."""

    device_id: str
    last_seen: datetime
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "last_seen": self.last_seen.isoformat(),
            "status": self.status,
        }


@dataclass(frozen=True)
class DeviceStatus:
    """Device-confirmed pump state. Written only by the device-side executor."""

    device_id: str
    pump_status: bool
    automatic_mode: bool
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "pump_status": self.pump_status,
            "automatic_mode": self.automatic_mode,
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Uninitialized:
    """Explicit absent-state result for a device with no confirmed status yet.

    Callers decide whether to synthesize a default for display; the store
    never fabricates one.
    """

    device_id: str

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"device_id": self.device_id, "status": "uninitialized"}
