"""
Access gate for state-changing admin operations.

Only identities holding the ``admin`` role may enqueue control commands or
register devices. Reads are not guarded here. Every decision is written to
the audit log.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.domain.exceptions import ForbiddenError
from app.domain.identity import Identity
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


class AccessGate:
    """Role check in front of command issuance and device registration."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None) -> None:
        self._audit = audit_logger

    def authorize_enqueue(self, identity: Identity, *, device_id: str | None = None) -> None:
        """Raise ForbiddenError unless ``identity`` may issue commands."""
        self.require_admin(identity, action="enqueue_command", device_id=device_id)

    def authorize_register(self, identity: Identity, *, device_id: str | None = None) -> None:
        self.require_admin(identity, action="register_device", device_id=device_id)

    def require_admin(self, identity: Identity, *, action: str, device_id: str | None = None) -> None:
        resource = f"device:{device_id}" if device_id else "device"
        if identity.is_admin:
            self._record(identity, action, resource, "allowed")
            return

        logger.warning(
            "%s denied for user %s (role=%s)",
            action,
            identity.user_id,
            identity.role.value,
        )
        self._record(identity, action, resource, "denied")
        raise ForbiddenError(
            "Admin role required",
            detail={"user_id": identity.user_id, "role": identity.role.value, "action": action},
        )

    def _record(self, identity: Identity, action: str, resource: str, outcome: str) -> None:
        if self._audit is None:
            return
        self._audit.log_event(
            actor=identity.user_id,
            action=action,
            resource=resource,
            outcome=outcome,
            role=identity.role.value,
        )
