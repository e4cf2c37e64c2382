"""
Domain Value Objects Package
=============================
Immutable records and pure rules for the irrigation controller.

Value objects are defined only by their attributes; persistence and
transport live in the infrastructure and blueprint layers.
"""

from .command import ControlCommand
from .device import Device, DeviceStatus, Heartbeat, Uninitialized
from .identity import Identity
from .liveness import evaluate_liveness
from .moisture import classify, needs_water, validate_percentage
from .reading import ReadingHistory, SensorReading
from .reconciled_view import ReconciledView

__all__ = [
    # Commands
    "ControlCommand",
    # Devices
    "Device",
    "DeviceStatus",
    "Heartbeat",
    "Uninitialized",
    "evaluate_liveness",
    # Identity
    "Identity",
    # Moisture
    "ReadingHistory",
    "SensorReading",
    "classify",
    "needs_water",
    "validate_percentage",
    # Observer view
    "ReconciledView",
]
