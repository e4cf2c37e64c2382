"""Repository facades exposing typed accessors over low-level mixins.

Base protocols are available for type-checking and dependency injection::

    from infrastructure.database.repositories.base import ReadRepository
"""

from infrastructure.database.repositories.base import BaseRepository, ReadRepository
from infrastructure.database.repositories.commands import CommandRepository
from infrastructure.database.repositories.devices import DeviceRepository
from infrastructure.database.repositories.heartbeats import HeartbeatRepository
from infrastructure.database.repositories.readings import ReadingRepository
from infrastructure.database.repositories.status import StatusRepository

__all__ = [
    "BaseRepository",
    "CommandRepository",
    "DeviceRepository",
    "HeartbeatRepository",
    "ReadRepository",
    "ReadingRepository",
    "StatusRepository",
]
