"""
Device registry and status endpoints.

- POST /api/devices                     register a device (admin)
- GET  /api/devices                     list registered devices
- GET  /api/devices/<device_id>         device row
- GET  /api/devices/<device_id>/status  authoritative pump status
- PUT  /api/devices/<device_id>/status  firmware status report
"""

from __future__ import annotations

import logging

from flask import Response

from app.blueprints.api._common import (
    fail as _fail,
    get_device_service,
    get_device_state_service,
    get_identity,
    get_json as _json,
    success as _success,
)
from app.schemas import RegisterDeviceRequest, StatusReportRequest
from app.utils.http import safe_route

from . import devices_api

logger = logging.getLogger(__name__)


@devices_api.post("")
@safe_route("Failed to register device")
def register_device() -> Response:
    identity = get_identity()
    if identity is None:
        return _fail("Authentication required", 401)

    body = RegisterDeviceRequest.model_validate(_json())
    device = get_device_service().register(
        body.device_id,
        identity,
        display_name=body.display_name,
        owner_id=body.owner_id,
    )
    return _success(device.to_dict(), 201)


@devices_api.get("")
@safe_route("Failed to list devices")
def list_devices() -> Response:
    devices = get_device_service().list_devices()
    return _success({"devices": [d.to_dict() for d in devices], "count": len(devices)})


@devices_api.get("/<device_id>")
@safe_route("Failed to get device")
def get_device(device_id: str) -> Response:
    device = get_device_service().get(device_id)
    if device is None:
        return _fail("Device not found", 404, details={"device_id": device_id})
    return _success(device.to_dict())


@devices_api.get("/<device_id>/status")
@safe_route("Failed to get device status")
def get_status(device_id: str) -> Response:
    """Stored status, or ``{"status": "uninitialized"}`` before the first execution."""
    return _success(get_device_state_service().current(device_id).to_dict())


@devices_api.put("/<device_id>/status")
@safe_route("Failed to store device status")
def report_status(device_id: str) -> Response:
    """Firmware-side write, e.g. after automatic mode switched the pump itself."""
    body = StatusReportRequest.model_validate(_json())
    status = get_device_state_service().write(
        device_id,
        body.pump_status,
        body.automatic_mode,
        at=body.updated_at,
    )
    return _success(status.to_dict())
