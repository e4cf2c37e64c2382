from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.devices import devices_api
from app.config import load_config, setup_logging
from app.extensions import init_extensions, socketio
from app.utils.http import exception_response


def create_app(config_overrides: dict[str, Any] | None = None, *, install_signal_handlers: bool = False) -> Flask:
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower() if key != "DEBUG" else key, value)
        config.__post_init__()

    # Configure logging early so container startup is visible in the terminal and irrisync.log.
    setup_logging(debug=config.DEBUG, level=config.log_level, log_path=config.log_path)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"
    flask_app.config["MAX_CONTENT_LENGTH"] = 1 * 1024 * 1024

    # Initialize Socket.IO BEFORE building ServiceContainer (EmitterService needs it)
    init_extensions(flask_app, config.socketio_cors_origins)

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    atexit.register(_graceful_shutdown, "atexit")
    flask_app.config["SHUTDOWN"] = _graceful_shutdown

    if install_signal_handlers:
        # SIGINT=Ctrl-C, SIGTERM=container/systemd stop
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # JSON envelopes for anything that escapes safe_route on /api/ (404s, 405s, oversized bodies).
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            if isinstance(exc, HTTPException):
                return exc
            raise exc
        return exception_response(exc)

    flask_app.register_blueprint(devices_api, url_prefix="/api/devices")

    # Register Socket.IO event handlers (must be after socketio init)
    from app.socketio import register_handlers

    register_handlers()

    if config.enable_socketio_bridge:
        container.emitter_service.start_change_bridge(container.change_feed)
    else:
        logging.info("Skipping Socket.IO change bridge (IRRISYNC_SOCKETIO_BRIDGE=false)")

    for bp_name in flask_app.blueprints:
        logging.info("Registered blueprint: %s", bp_name)

    logging.getLogger(__name__).info("IrriSync application initialized successfully.")
    return flask_app


__all__ = ["create_app", "socketio"]
