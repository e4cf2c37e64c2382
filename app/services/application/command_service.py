"""
Command queue service.

Admin intents are appended as ControlCommand rows and wait for the device to
execute them. The queue never merges, deduplicates or cancels commands, and it
never waits on liveness: enqueueing for an offline or never-seen device
succeeds as long as the device is registered.

Ordering is the store-assigned ``sequence``; client clocks play no part.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from app.domain.command import ControlCommand
from app.domain.exceptions import ValidationError
from app.domain.identity import Identity
from app.security.access_gate import AccessGate
from app.utils.time import ensure_utc, utc_now
from infrastructure.database.pagination import DEFAULT_LIMIT, clamp_limit
from infrastructure.database.repositories.commands import CommandRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


class CommandService:
    """Append-only FIFO-per-device queue of pump intents."""

    def __init__(
        self,
        *,
        command_repo: CommandRepository,
        access_gate: AccessGate,
        audit_logger: Optional[AuditLogger] = None,
        stale_after: timedelta = timedelta(minutes=10),
    ) -> None:
        self._repo = command_repo
        self._gate = access_gate
        self._audit = audit_logger
        self._stale_after = stale_after

    def enqueue(
        self,
        device_id: str,
        pump_control: bool,
        automatic_mode: bool,
        issuer: Identity,
    ) -> str:
        """
        Append a pending command and return its id.

        Raises:
            ForbiddenError: issuer is not an admin (no row is written)
            ValidationError: intent fields are not booleans
            NotFoundError: device is not registered
        """
        self._gate.authorize_enqueue(issuer, device_id=device_id)
        for name, value in (("pump_control", pump_control), ("automatic_mode", automatic_mode)):
            if not isinstance(value, bool):
                raise ValidationError(f"{name} must be a boolean", detail={name: repr(value)})

        command = self._repo.create(
            command_id=str(uuid.uuid4()),
            device_id=device_id,
            pump_control=pump_control,
            automatic_mode=automatic_mode,
            issuer_id=issuer.user_id,
            created_at=utc_now(),
        )
        logger.info(
            "Queued command %s for %s (pump=%s auto=%s seq=%s)",
            command.id,
            device_id,
            pump_control,
            automatic_mode,
            command.sequence,
        )
        if self._audit:
            self._audit.log_event(
                actor=issuer.user_id,
                action="enqueue_command",
                resource=f"device:{device_id}",
                outcome="queued",
                command_id=command.id,
                pump_control=pump_control,
                automatic_mode=automatic_mode,
            )
        return command.id

    def mark_executed(self, command_id: str, executed_at: datetime | None = None) -> ControlCommand:
        """Flip ``executed`` to true. Calling it again is a no-op.

        Raises:
            NotFoundError: unknown id
            ConflictError: an older command for the same device is still pending
        """
        command, changed = self._repo.mark_executed(command_id, ensure_utc(executed_at or utc_now()))
        if changed:
            logger.info("Command %s marked executed", command_id)
        else:
            logger.debug("Command %s already executed; ignoring", command_id)
        return command

    def get(self, command_id: str) -> ControlCommand | None:
        return self._repo.get(command_id)

    def list_commands(
        self,
        device_id: str,
        *,
        pending_only: bool = False,
        limit: int | None = None,
    ) -> list[ControlCommand]:
        try:
            validated = clamp_limit(limit, maximum=MAX_LIST_LIMIT, default=DEFAULT_LIMIT)
        except ValueError as exc:
            raise ValidationError(str(exc), detail={"limit": limit}) from exc
        return self._repo.list_for_device(device_id, pending_only=pending_only, limit=validated)

    def next_pending(self, device_id: str) -> ControlCommand | None:
        """Oldest un-executed command for the device, as polled by firmware."""
        return self._repo.oldest_pending(device_id)

    def stale_pending(
        self,
        device_id: str,
        *,
        older_than: timedelta | None = None,
        now: datetime | None = None,
    ) -> list[ControlCommand]:
        """Pending commands created before ``now - older_than``.

        Reporting only; stale commands stay pending.
        """
        window = self._stale_after if older_than is None else older_than
        cutoff = ensure_utc(now or utc_now()) - window
        return self._repo.pending_created_before(device_id, cutoff)
