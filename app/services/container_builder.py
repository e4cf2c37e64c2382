"""
Container Builder
=================

Builds the service container in layers:

1. infrastructure: audit logger, SQLite handler, repositories
2. shared utilities: ChangeFeed, Socket.IO emitter
3. application services: access gate, registry, queue, telemetry, state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from app.config import AppConfig
from app.security.access_gate import AccessGate
from app.services.application.command_service import CommandService
from app.services.application.device_service import DeviceService
from app.services.application.device_state_service import DeviceStateService
from app.services.application.heartbeat_service import HeartbeatService
from app.services.application.sensor_log_service import SensorLogService
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
class InfrastructureComponents:
    """Infrastructure layer components (database, repos, logging)."""

    database: SQLiteDatabaseHandler
    device_repo: DeviceRepository
    reading_repo: ReadingRepository
    heartbeat_repo: HeartbeatRepository
    command_repo: CommandRepository
    status_repo: StatusRepository
    audit_logger: AuditLogger


@dataclass
class SharedUtilities:
    change_feed: ChangeFeed
    emitter_service: EmitterService


class ContainerBuilder:
    """Assemble ServiceContainer components from an AppConfig."""

    def __init__(self, config: AppConfig):
        self.config = config

    def build_infrastructure(self) -> InfrastructureComponents:
        logger.info("Building infrastructure components...")

        audit_logger = AuditLogger(self.config.audit_log_path, self.config.log_level)
        database = SQLiteDatabaseHandler(
            self.config.database_path,
            busy_timeout_seconds=self.config.db_busy_timeout_seconds,
        )
        database.init_app(None)

        logger.info("Infrastructure components initialized")
        return InfrastructureComponents(
            database=database,
            device_repo=DeviceRepository(database),
            reading_repo=ReadingRepository(database),
            heartbeat_repo=HeartbeatRepository(database),
            command_repo=CommandRepository(database),
            status_repo=StatusRepository(database),
            audit_logger=audit_logger,
        )

    def build_shared_utilities(self) -> SharedUtilities:
        # Import socketio here to avoid circular dependency at module level
        from app.extensions import socketio

        return SharedUtilities(
            change_feed=ChangeFeed(queue_size=self.config.change_feed_queue_size),
            emitter_service=EmitterService(sio=socketio),
        )

    def build_application_components(
        self,
        infra: InfrastructureComponents,
        utils: SharedUtilities,
    ) -> dict[str, Any]:
        access_gate = AccessGate(infra.audit_logger)
        return {
            "access_gate": access_gate,
            "device_service": DeviceService(
                device_repo=infra.device_repo,
                access_gate=access_gate,
                audit_logger=infra.audit_logger,
            ),
            "command_service": CommandService(
                command_repo=infra.command_repo,
                access_gate=access_gate,
                audit_logger=infra.audit_logger,
                stale_after=timedelta(minutes=self.config.stale_command_minutes),
            ),
            "heartbeat_service": HeartbeatService(
                heartbeat_repo=infra.heartbeat_repo,
                change_feed=utils.change_feed,
                threshold=timedelta(seconds=self.config.liveness_threshold_seconds),
            ),
            "sensor_log_service": SensorLogService(
                reading_repo=infra.reading_repo,
                change_feed=utils.change_feed,
                dry_threshold=self.config.moisture_dry_threshold,
                max_rows=self.config.history_max_rows,
            ),
            "device_state_service": DeviceStateService(
                status_repo=infra.status_repo,
                change_feed=utils.change_feed,
                audit_logger=infra.audit_logger,
            ),
        }

    def build(self) -> dict[str, Any]:
        """
        Build the complete service container.

        Returns:
            Dictionary with all components for ServiceContainer construction
        """
        infra = self.build_infrastructure()
        utils = self.build_shared_utilities()
        services = self.build_application_components(infra, utils)
        return {
            "config": self.config,
            "database": infra.database,
            "device_repo": infra.device_repo,
            "reading_repo": infra.reading_repo,
            "heartbeat_repo": infra.heartbeat_repo,
            "command_repo": infra.command_repo,
            "status_repo": infra.status_repo,
            "audit_logger": infra.audit_logger,
            "change_feed": utils.change_feed,
            "emitter_service": utils.emitter_service,
            **services,
        }
