"""
Enums Module
============

This module provides enumeration types for the irrigation sync service.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.device import HistoryWindow, Liveness, MoistureBand, Role
from app.enums.events import ALL_CHANGE_TABLES, ChangeOp, ChangeTable, WebSocketEvent

__all__ = [
    "ALL_CHANGE_TABLES",
    "ChangeOp",
    "ChangeTable",
    "HistoryWindow",
    "Liveness",
    "MoistureBand",
    "Role",
    "WebSocketEvent",
]
