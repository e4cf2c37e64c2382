import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict

from app.utils.time import iso_now


class WindowsSafeRotatingFileHandler(RotatingFileHandler):
    """
    A RotatingFileHandler that works better on Windows by closing the file
    handle before rotation and catching PermissionError exceptions.
    """

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None
        try:
            super().doRollover()
        except PermissionError:
            # On Windows, file may still be locked. Skip rotation and continue logging.
            pass
        finally:
            if not self.stream:
                self.stream = self._open()


class AuditLogger:
    """Structured audit logger that writes append-only JSON records.

    Records command issuance, rejected attempts and executions.
    """

    LOGGER_NAME = "irrisync.audit"

    def __init__(self, log_path: str, level: str = "INFO") -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(self.LOGGER_NAME)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        target = os.path.abspath(str(self.log_path))
        existing = [
            handler
            for handler in self.logger.handlers
            if isinstance(handler, RotatingFileHandler) and handler.baseFilename == target
        ]
        if existing:
            self._handler = existing[0]
            self._owns_handler = False
            return

        # Use Windows-safe handler on Windows, regular handler elsewhere
        handler_cls = WindowsSafeRotatingFileHandler if sys.platform == "win32" else RotatingFileHandler
        handler = handler_cls(
            filename=str(self.log_path),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=30,
            encoding="utf-8",
            delay=True,
        )
        handler.setFormatter(logging.Formatter(fmt="%(message)s"))
        self.logger.addHandler(handler)
        self._handler = handler
        self._owns_handler = True

    def log_event(self, actor: str, action: str, resource: str, outcome: str, **metadata: Any) -> None:
        payload: Dict[str, Any] = {
            "ts": iso_now(),
            "actor": actor,
            "action": action,
            "resource": resource,
            "outcome": outcome,
        }
        if metadata:
            payload["meta"] = metadata

        self.logger.info(json.dumps(payload, default=str))

    def close(self) -> None:
        """Detach and close the file handler this instance installed."""
        if self._owns_handler and self._handler in self.logger.handlers:
            self.logger.removeHandler(self._handler)
            self._handler.close()
