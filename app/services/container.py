from __future__ import annotations

import logging
from dataclasses import dataclass

from app.config import AppConfig
from app.security.access_gate import AccessGate
from app.services.application.command_service import CommandService
from app.services.application.device_service import DeviceService
from app.services.application.device_state_service import DeviceStateService
from app.services.application.heartbeat_service import HeartbeatService
from app.services.application.sensor_log_service import SensorLogService
from app.services.container_builder import ContainerBuilder
from app.utils.change_feed import ChangeFeed
from app.utils.emitters import EmitterService
from infrastructure.database.repositories import (
    CommandRepository,
    DeviceRepository,
    HeartbeatRepository,
    ReadingRepository,
    StatusRepository,
)
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    device_repo: DeviceRepository
    reading_repo: ReadingRepository
    heartbeat_repo: HeartbeatRepository
    command_repo: CommandRepository
    status_repo: StatusRepository
    audit_logger: AuditLogger
    # Shared utilities
    change_feed: ChangeFeed
    emitter_service: EmitterService
    # Application services
    access_gate: AccessGate
    device_service: DeviceService
    command_service: CommandService
    heartbeat_service: HeartbeatService
    sensor_log_service: SensorLogService
    device_state_service: DeviceStateService

    @classmethod
    def build(cls, config: AppConfig) -> "ServiceContainer":
        """Construct the service container with all dependencies."""
        logger.info("Building ServiceContainer using ContainerBuilder...")
        container = cls(**ContainerBuilder(config).build())
        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.emitter_service.stop_change_bridge()
        self.database.close_db()
        self.audit_logger.close()
        logger.info("ServiceContainer shutdown complete.")
