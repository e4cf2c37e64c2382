"""
Device-related Enumerations
============================

Enums shared by the irrigation controller services: identity roles,
liveness states, moisture bands and history windows.
"""

from datetime import timedelta
from enum import Enum


class Role(str, Enum):
    """Role claim supplied by the external identity provider."""

    ADMIN = "admin"
    USER = "user"

    @classmethod
    def _missing_(cls, value: object) -> "Role | None":
        """Accept case variants such as ``"Admin"``."""
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class Liveness(str, Enum):
    """Derived connectivity of a device based on heartbeat staleness."""

    ONLINE = "online"
    OFFLINE = "offline"
    NEVER_SEEN = "never_seen"

    @property
    def is_online(self) -> bool:
        return self is Liveness.ONLINE


class MoistureBand(str, Enum):
    """Qualitative soil moisture bands.

    Boundaries are lower-inclusive / upper-exclusive, except ``WET`` which is
    closed at 100:

    - DRY: [0, 30)
    - MODERATE: [30, 50)
    - OPTIMAL: [50, 80)
    - WET: [80, 100]
    """

    DRY = "dry"
    MODERATE = "moderate"
    OPTIMAL = "optimal"
    WET = "wet"


class HistoryWindow(str, Enum):
    """Preset look-back windows for reading history."""

    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"

    @property
    def delta(self) -> timedelta:
        return {
            HistoryWindow.LAST_24_HOURS: timedelta(hours=24),
            HistoryWindow.LAST_7_DAYS: timedelta(days=7),
            HistoryWindow.LAST_30_DAYS: timedelta(days=30),
        }[self]
