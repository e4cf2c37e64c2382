"""
Schemas Module
==============

This module provides Pydantic models for request validation and event
payloads. Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.device import (
    AppendReadingRequest,
    EnqueueCommandRequest,
    ExecuteCommandRequest,
    HeartbeatRequest,
    RegisterDeviceRequest,
    StatusReportRequest,
)
from app.schemas.events import ChangeEvent

__all__ = [
    "AppendReadingRequest",
    "ChangeEvent",
    "EnqueueCommandRequest",
    "ExecuteCommandRequest",
    "HeartbeatRequest",
    "RegisterDeviceRequest",
    "StatusReportRequest",
]
