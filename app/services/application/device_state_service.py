"""
Authoritative device state.

One DeviceStatus row per device, written only by the device-side executor.
``updated_at`` never moves backwards. Every committed write is published to
the ChangeFeed so observers converge on the stored row.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from app.domain.command import ControlCommand
from app.domain.device import DeviceStatus, Uninitialized
from app.domain.exceptions import ValidationError
from app.enums.events import ChangeOp, ChangeTable
from app.utils.change_feed import ChangeFeed, Subscription
from app.utils.time import ensure_utc, utc_now
from infrastructure.database.repositories.status import StatusRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


class DeviceStateService:
    """StateStore: read, write and execute against DeviceStatus."""

    def __init__(
        self,
        *,
        status_repo: StatusRepository,
        change_feed: ChangeFeed,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self._repo = status_repo
        self._feed = change_feed
        self._audit = audit_logger

    def current(self, device_id: str) -> DeviceStatus | Uninitialized:
        status = self._repo.get(device_id)
        return status if status is not None else Uninitialized(device_id)

    def write(
        self,
        device_id: str,
        pump_status: bool,
        automatic_mode: bool,
        at: datetime | None = None,
    ) -> DeviceStatus:
        """Store the device's actual state. Only the device-side executor calls this."""
        for name, value in (("pump_status", pump_status), ("automatic_mode", automatic_mode)):
            if not isinstance(value, bool):
                raise ValidationError(f"{name} must be a boolean", detail={name: repr(value)})
        status, inserted = self._repo.write(
            device_id,
            pump_status=pump_status,
            automatic_mode=automatic_mode,
            at=ensure_utc(at) if at else utc_now(),
        )
        logger.info("Status for %s: pump=%s auto=%s", device_id, pump_status, automatic_mode)
        self._publish(status, inserted)
        return status

    def apply_command(self, command_id: str, at: datetime | None = None) -> DeviceStatus | None:
        """
        Execute a queued command: mark it executed and store its intent as the
        device status, atomically.

        Returns the new status, or None if the command had already been executed.

        Raises:
            NotFoundError: unknown command
            ConflictError: an older command for the same device is still pending
        """
        result = self._repo.apply_command(command_id, at=ensure_utc(at) if at else utc_now())
        if result is None:
            logger.debug("Command %s already executed; nothing applied", command_id)
            return None

        command, status, inserted = result
        logger.info(
            "Applied command %s to %s (pump=%s auto=%s)",
            command.id,
            command.device_id,
            status.pump_status,
            status.automatic_mode,
        )
        self._audit_execution(command)
        self._publish(status, inserted)
        return status

    def subscribe(
        self,
        device_id: str | None,
        tables: Optional[Iterable[ChangeTable | str]] = None,
    ) -> Subscription:
        """Open a cancellable change stream; None follows every device."""
        return self._feed.subscribe(device_id, tables)

    def _publish(self, status: DeviceStatus, inserted: bool) -> None:
        self._feed.publish(
            ChangeTable.STATUS,
            ChangeOp.INSERT if inserted else ChangeOp.UPDATE,
            status.device_id,
            status.to_dict(),
        )

    def _audit_execution(self, command: ControlCommand) -> None:
        if self._audit is None:
            return
        self._audit.log_event(
            actor=f"device:{command.device_id}",
            action="execute_command",
            resource=f"command:{command.id}",
            outcome="executed",
            issuer_id=command.issuer_id,
            sequence=command.sequence,
        )
