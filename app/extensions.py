"""Flask Extension Instances and Initialisation."""

import logging
import os

from flask import Flask
from flask_socketio import SocketIO


def _socketio_transports() -> list[str]:
    """Return allowed Engine.IO transports.

    Default to polling-only to avoid Werkzeug websocket upgrade crashes.
    Override with `IRRISYNC_SOCKETIO_TRANSPORTS`, e.g. `polling,websocket`.
    """
    raw = os.getenv("IRRISYNC_SOCKETIO_TRANSPORTS")
    if raw:
        transports = [t.strip() for t in raw.split(",") if t.strip()]
        if transports:
            return transports

    return ["polling"]


# Threading mode keeps the ChangeFeed bridge on a plain thread.
socketio = SocketIO(
    async_mode="threading",
    cors_allowed_origins=[],
    logger=True,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    transports=_socketio_transports(),
)


def init_extensions(app: Flask, cors_origins: str) -> None:
    """Initialise Flask extension objects."""
    origins = cors_origins if isinstance(cors_origins, str) else "*"

    try:
        # Ensure engineio logger does not emit INFO-level messages
        logging.getLogger("engineio").setLevel(logging.WARNING)
        logging.getLogger("socketio").setLevel(logging.INFO)

        socketio.init_app(
            app, cors_allowed_origins=origins, logger=logging.getLogger("socketio"), engineio_logger=False
        )
        logging.info("Socket.IO initialized with CORS origins: %s", origins)
    except Exception as e:
        logging.error("Failed to initialize Socket.IO: %s", e, exc_info=True)
        raise
