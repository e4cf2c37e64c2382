"""
Device registry service.

Devices are identity anchors for every other table. They are created by an
admin registration or implicitly by the first device-originated write.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.domain.device import Device
from app.domain.exceptions import ValidationError
from app.domain.identity import Identity
from app.security.access_gate import AccessGate
from infrastructure.database.repositories.devices import DeviceRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

MAX_DEVICE_ID_LENGTH = 64


def validate_device_id(device_id: object) -> str:
    if not isinstance(device_id, str) or not device_id.strip():
        raise ValidationError("device_id must be a non-empty string", detail={"device_id": repr(device_id)})
    device_id = device_id.strip()
    if len(device_id) > MAX_DEVICE_ID_LENGTH:
        raise ValidationError(
            f"device_id longer than {MAX_DEVICE_ID_LENGTH} characters",
            detail={"device_id": device_id[:MAX_DEVICE_ID_LENGTH]},
        )
    return device_id


class DeviceService:
    """Register and look up devices."""

    def __init__(
        self,
        *,
        device_repo: DeviceRepository,
        access_gate: AccessGate,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self._repo = device_repo
        self._gate = access_gate
        self._audit = audit_logger

    def register(
        self,
        device_id: str,
        identity: Identity,
        *,
        display_name: str | None = None,
        owner_id: str | None = None,
    ) -> Device:
        """Create or refresh a device. Re-registering updates the given fields only."""
        device_id = validate_device_id(device_id)
        self._gate.authorize_register(identity, device_id=device_id)
        if owner_id is None and self._repo.get(device_id) is None:
            # New devices are owned by the registering admin unless stated.
            owner_id = identity.user_id
        device, created = self._repo.register(device_id, display_name=display_name, owner_id=owner_id)
        logger.info("Device %s %s by %s", device_id, "registered" if created else "updated", identity.user_id)
        if self._audit:
            self._audit.log_event(
                actor=identity.user_id,
                action="register_device",
                resource=f"device:{device_id}",
                outcome="created" if created else "updated",
            )
        return device

    def ensure(self, device_id: str) -> bool:
        """Create a bare row for a device on first contact. Returns True if created."""
        return self._repo.ensure(validate_device_id(device_id))

    def get(self, device_id: str) -> Device | None:
        return self._repo.get(device_id)

    def list_devices(self) -> list[Device]:
        return self._repo.list_all()
