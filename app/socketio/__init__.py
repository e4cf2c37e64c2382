"""
Socket.IO Event Handlers
========================

Namespace handlers for real-time communication.

Namespaces:
- /devices - per-device change events (status, readings, heartbeats)

Usage:
    Import this module after socketio.init_app() to register all handlers.

    from app.socketio import register_handlers
    register_handlers()
"""

import logging

logger = logging.getLogger(__name__)


def register_handlers():
    """
    Register all Socket.IO event handlers.

    This function must be called AFTER socketio.init_app().
    """
    # Import handlers to trigger @socketio.on() decorator registration
    from . import device_handlers

    _ = device_handlers
    logger.info("Socket.IO handlers registered (/devices)")
