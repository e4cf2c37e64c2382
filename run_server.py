"""Entry point for the IrriSync API and Socket.IO server."""

import logging
import os
import sys

from app import create_app, socketio

logger = logging.getLogger(__name__)


def main() -> None:
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")

    app = create_app(install_signal_handlers=True)

    # Get port from environment or use default
    host = os.environ.get("IRRISYNC_HOST", "0.0.0.0")
    port = int(os.environ.get("FLASK_RUN_PORT", 8000))
    logger.info("Server starting on http://%s:%s", host, port)

    try:
        # Use socketio.run() instead of app.run() for WebSocket support
        socketio.run(
            app,
            host=host,
            port=port,
            debug=False,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
