"""
Shared test fixtures for the IrriSync test suite.

Provides:
- File-backed SQLite database per test with all tables created
- Repository instances wired to the test database
- Service factories sharing one ChangeFeed
- Identities for admin and regular callers
- Seed helpers for devices and commands

Usage:
    def test_example(command_service, admin, seed):
        seed.device("esp32_device_1")
        command_id = command_service.enqueue("esp32_device_1", True, False, admin)
        assert command_id
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.domain.identity import Identity
from app.enums.device import Role
from app.security.access_gate import AccessGate
from app.utils.change_feed import ChangeFeed
from infrastructure.database.repositories import (
    CommandRepository,
    DeviceRepository,
    HeartbeatRepository,
    ReadingRepository,
    StatusRepository,
)
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

DEVICE_ID = "esp32_device_1"
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_path(tmp_path):
    return str(tmp_path / "irrisync_test.db")


@pytest.fixture()
def db_handler(db_path):
    """SQLite database with all tables created.

    Each test gets a fresh database file, so no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(db_path, busy_timeout_seconds=5.0)
    handler.create_tables()
    yield handler
    handler.close_db()


@pytest.fixture()
def db_connection(db_handler):
    """Raw sqlite3 connection for direct SQL in tests."""
    with db_handler.connection() as conn:
        yield conn


# ========================== Repository Fixtures ============================


@pytest.fixture()
def device_repo(db_handler):
    return DeviceRepository(db_handler)


@pytest.fixture()
def reading_repo(db_handler):
    return ReadingRepository(db_handler)


@pytest.fixture()
def heartbeat_repo(db_handler):
    return HeartbeatRepository(db_handler)


@pytest.fixture()
def command_repo(db_handler):
    return CommandRepository(db_handler)


@pytest.fixture()
def status_repo(db_handler):
    return StatusRepository(db_handler)


# ========================== Identity Fixtures ==============================


@pytest.fixture()
def admin():
    return Identity(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture()
def viewer():
    return Identity(user_id="viewer-1", role=Role.USER)


# ========================== Mock Fixtures ==================================


@pytest.fixture()
def mock_audit_logger():
    """Mock AuditLogger."""
    logger = MagicMock()
    logger.log_event = MagicMock()
    return logger


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def change_feed():
    return ChangeFeed(queue_size=16)


@pytest.fixture()
def access_gate(mock_audit_logger):
    return AccessGate(mock_audit_logger)


@pytest.fixture()
def device_service(device_repo, access_gate, mock_audit_logger):
    from app.services.application.device_service import DeviceService

    return DeviceService(device_repo=device_repo, access_gate=access_gate, audit_logger=mock_audit_logger)


@pytest.fixture()
def command_service(command_repo, access_gate, mock_audit_logger):
    from app.services.application.command_service import CommandService

    return CommandService(command_repo=command_repo, access_gate=access_gate, audit_logger=mock_audit_logger)


@pytest.fixture()
def heartbeat_service(heartbeat_repo, change_feed):
    from app.services.application.heartbeat_service import HeartbeatService

    return HeartbeatService(heartbeat_repo=heartbeat_repo, change_feed=change_feed)


@pytest.fixture()
def sensor_log(reading_repo, change_feed):
    from app.services.application.sensor_log_service import SensorLogService

    return SensorLogService(reading_repo=reading_repo, change_feed=change_feed, max_rows=50)


@pytest.fixture()
def state_service(status_repo, change_feed, mock_audit_logger):
    from app.services.application.device_state_service import DeviceStateService

    return DeviceStateService(status_repo=status_repo, change_feed=change_feed, audit_logger=mock_audit_logger)


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            seed.device("esp32_device_1")
            command_id = seed.command("esp32_device_1", pump=True)
    """

    def __init__(self, device_repo: DeviceRepository, command_service, admin: Identity):
        self._devices = device_repo
        self._commands = command_service
        self._admin = admin

    def device(self, device_id: str = DEVICE_ID, display_name: str | None = None) -> str:
        self._devices.register(device_id, display_name=display_name, owner_id=self._admin.user_id)
        return device_id

    def command(self, device_id: str = DEVICE_ID, *, pump: bool = True, auto: bool = False) -> str:
        return self._commands.enqueue(device_id, pump, auto, self._admin)


@pytest.fixture()
def seed(device_repo, command_service, admin):
    return SeedData(device_repo, command_service, admin)


@pytest.fixture()
def device_id(seed):
    """A registered device with no heartbeat, readings or status."""
    return seed.device()


@pytest.fixture()
def t0():
    return T0
