"""
Configuration for the irrigation sync service
=============================================
Runtime settings loaded from ``IRRISYNC_*`` environment variables with
defaults suitable for a single controller. Sets up the logging
configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("IRRISYNC_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("IRRISYNC_SECRET_KEY", "IrriSyncDevSecretKey"))
    database_path: str = field(default_factory=lambda: os.getenv("IRRISYNC_DATABASE_PATH", "database/irrisync.db"))
    db_busy_timeout_seconds: float = field(default_factory=lambda: _env_float("IRRISYNC_DB_BUSY_TIMEOUT", 5.0))

    # A device is online while its last heartbeat is younger than this.
    liveness_threshold_seconds: int = field(default_factory=lambda: _env_int("IRRISYNC_LIVENESS_THRESHOLD", 600))
    # Readings below this percentage count as "needs water" when the device omits the digital flag.
    moisture_dry_threshold: float = field(default_factory=lambda: _env_float("IRRISYNC_MOISTURE_DRY_THRESHOLD", 30.0))
    history_max_rows: int = field(default_factory=lambda: _env_int("IRRISYNC_HISTORY_MAX_ROWS", 10_000))
    # Pending commands older than this are reported as stale (never requeued).
    stale_command_minutes: int = field(default_factory=lambda: _env_int("IRRISYNC_STALE_COMMAND_MINUTES", 10))

    change_feed_queue_size: int = field(default_factory=lambda: _env_int("IRRISYNC_CHANGE_FEED_QUEUE_SIZE", 1024))
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("IRRISYNC_SOCKETIO_CORS", "*"))
    enable_socketio_bridge: bool = field(default_factory=lambda: _env_bool("IRRISYNC_SOCKETIO_BRIDGE", True))

    DEBUG: bool = field(default_factory=lambda: _env_bool("IRRISYNC_DEBUG", False))
    audit_log_path: str = field(default_factory=lambda: os.getenv("IRRISYNC_AUDIT_LOG_PATH", "logs/audit.log"))
    log_path: str = field(default_factory=lambda: os.getenv("IRRISYNC_LOG_PATH", "logs/irrisync.log"))
    log_level: str = field(default_factory=lambda: os.getenv("IRRISYNC_LOG_LEVEL", "INFO"))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="IrriSyncDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # SECURITY: Fail fast if using default secret key in production
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set IRRISYNC_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.liveness_threshold_seconds <= 0:
            raise ValueError("IRRISYNC_LIVENESS_THRESHOLD must be positive.")
        if self.change_feed_queue_size <= 0:
            raise ValueError("IRRISYNC_CHANGE_FEED_QUEUE_SIZE must be positive.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        secret = self.secret_key or os.getenv("FLASK_SECRET_KEY", "")
        if not secret:
            raise RuntimeError(
                "Missing IRRISYNC_SECRET_KEY or FLASK_SECRET_KEY environment variable. "
                "Production systems must set an explicit secret key."
            )

        return {
            "ENV": self.environment,
            "SECRET_KEY": secret,
            "DATABASE_PATH": self.database_path,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.DEBUG,
            "LIVENESS_THRESHOLD_SECONDS": self.liveness_threshold_seconds,
        }


def setup_logging(debug: bool = False, level: str = "INFO", log_path: str | None = None) -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "irrisync_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "irrisync_file" for h in root.handlers)

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "irrisync_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_path and not has_file:
        directory = os.path.dirname(log_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "irrisync_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet chatty third-party loggers
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
