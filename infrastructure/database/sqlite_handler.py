import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from app.domain.exceptions import RepositoryError, RetryableError
from infrastructure.database.ops.commands import CommandOperations
from infrastructure.database.ops.devices import DeviceOperations
from infrastructure.database.ops.heartbeats import HeartbeatOperations
from infrastructure.database.ops.readings import ReadingOperations
from infrastructure.database.ops.status import StatusOperations

logger = logging.getLogger(__name__)

_RETRYABLE_MARKERS = (
    "database is locked",
    "database table is locked",
    "database is busy",
    "unable to open database",
    "disk i/o error",
)


def translate_sqlite_error(exc: sqlite3.Error, operation: str) -> RepositoryError:
    """Map a sqlite3 error onto the repository exception hierarchy."""
    message = str(exc).lower()
    if isinstance(exc, sqlite3.OperationalError) and any(m in message for m in _RETRYABLE_MARKERS):
        return RetryableError(f"Store unavailable during {operation}: {exc}", detail={"operation": operation})
    return RepositoryError(f"Database error during {operation}: {exc}", detail={"operation": operation})


class SQLiteDatabaseHandler(
    DeviceOperations,
    ReadingOperations,
    HeartbeatOperations,
    CommandOperations,
    StatusOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(self, database_path: str, busy_timeout_seconds: float = 5.0) -> None:
        self._database_path = database_path
        self._busy_timeout = busy_timeout_seconds
        self._local = threading.local()

        # Ensure the directory for the database file exists
        db_path = Path(database_path)
        if database_path != ":memory:" and not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info("Created database directory: %s", db_path.parent)

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise translate_sqlite_error(exc, "connect") from exc
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        # Autocommit mode: write groups open their own BEGIN IMMEDIATE.
        connection = sqlite3.connect(
            self._database_path,
            timeout=self._busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "file is encrypted or is not a database" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure SQLite connection.

        - WAL mode: readers never block the single writer
        - NORMAL synchronous: still durable with WAL
        - foreign keys: child rows always reference a Devices row
        """
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA foreign_keys=ON")
        connection.execute(f"PRAGMA busy_timeout={int(self._busy_timeout * 1000)}")
        connection.execute("PRAGMA temp_store=MEMORY")

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self, operation: str = "read") -> Iterator[sqlite3.Connection]:
        """Yield the thread's connection, translating sqlite errors."""
        conn = self.get_db()
        try:
            yield conn
        except sqlite3.Error as exc:
            raise translate_sqlite_error(exc, operation) from exc

    @contextmanager
    def transaction(self, operation: str = "write") -> Iterator[sqlite3.Connection]:
        """Run a write group in one ``BEGIN IMMEDIATE`` transaction.

        Commits on success and rolls back on any exception. Nested calls join
        the outer transaction.
        """
        conn = self.get_db()
        if conn.in_transaction:
            yield conn
            return

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise translate_sqlite_error(exc, operation) from exc

        try:
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback(conn)
            logger.error("Transaction %s rolled back: %s", operation, exc)
            raise translate_sqlite_error(exc, operation) from exc
        except BaseException:
            self._rollback(conn)
            raise

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as exc:
                logger.error("Rollback failed: %s", exc)

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        with self.transaction("create_tables") as db:
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Devices (
                    device_id TEXT PRIMARY KEY,
                    display_name TEXT,
                    owner_id TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS SensorReadings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    device_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    moisture_percentage REAL NOT NULL
                        CHECK (moisture_percentage >= 0 AND moisture_percentage <= 100),
                    moisture_digital INTEGER NOT NULL,
                    FOREIGN KEY (device_id) REFERENCES Devices(device_id)
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_sensor_readings_device_ts "
                "ON SensorReadings(device_id, timestamp)"
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS DeviceHeartbeats (
                    device_id TEXT PRIMARY KEY,
                    last_seen TEXT NOT NULL,
                    status TEXT NOT NULL,
                    FOREIGN KEY (device_id) REFERENCES Devices(device_id)
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS DeviceStatus (
                    device_id TEXT PRIMARY KEY,
                    pump_status INTEGER NOT NULL,
                    automatic_mode INTEGER NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (device_id) REFERENCES Devices(device_id)
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS ControlCommands (
                    sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    device_id TEXT NOT NULL,
                    pump_control INTEGER NOT NULL,
                    automatic_mode INTEGER NOT NULL,
                    issuer_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    executed INTEGER NOT NULL DEFAULT 0,
                    executed_at TEXT,
                    FOREIGN KEY (device_id) REFERENCES Devices(device_id)
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_control_commands_pending "
                "ON ControlCommands(device_id, executed, sequence)"
            )
        logger.info("Database schema ready at %s", self._database_path)
