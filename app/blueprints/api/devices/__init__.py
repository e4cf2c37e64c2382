"""
Device API Blueprint
====================

Device synchronization API organized into logical sub-modules:
- registry.py: registration, lookup and authoritative status
- commands.py: admin command queue and firmware execution
- telemetry.py: heartbeats, liveness and moisture readings

All routes are registered under /api/devices prefix.
"""

from __future__ import annotations

import logging

from flask import Blueprint

# Create main blueprint
devices_api = Blueprint("devices_api", __name__)
logger = logging.getLogger("devices_api")

# Import all sub-modules to register their routes
from . import (  # noqa: E402
    commands,
    registry,
    telemetry,
)

_ = (commands, registry, telemetry)

__all__ = ["devices_api"]
