"""
Command queue endpoints.

Admin side:
- POST /api/devices/<device_id>/commands            enqueue (admin only)
- GET  /api/devices/<device_id>/commands            list, ``?pending=1&limit=N``
- GET  /api/devices/<device_id>/commands/stale      pending longer than ``?minutes=``

Firmware side:
- GET  /api/devices/<device_id>/commands/next       oldest pending command
- POST /api/devices/<device_id>/commands/<id>/execute
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import Response, request

from app.blueprints.api._common import (
    fail as _fail,
    get_command_service,
    get_device_state_service,
    get_identity,
    get_json as _json,
    parse_flag,
    parse_int,
    success as _success,
)
from app.domain.exceptions import ValidationError
from app.schemas import EnqueueCommandRequest, ExecuteCommandRequest
from app.utils.http import safe_route

from . import devices_api

logger = logging.getLogger(__name__)


@devices_api.post("/<device_id>/commands")
@safe_route("Failed to enqueue command")
def enqueue_command(device_id: str) -> Response:
    identity = get_identity()
    if identity is None:
        return _fail("Authentication required", 401)

    body = EnqueueCommandRequest.model_validate(_json())
    command_id = get_command_service().enqueue(
        device_id,
        body.pump_control,
        body.automatic_mode,
        identity,
    )
    return _success({"command_id": command_id}, 201)


@devices_api.get("/<device_id>/commands")
@safe_route("Failed to list commands")
def list_commands(device_id: str) -> Response:
    commands = get_command_service().list_commands(
        device_id,
        pending_only=parse_flag(request.args.get("pending")),
        limit=parse_int(request.args.get("limit"), "limit"),
    )
    return _success({"commands": [c.to_dict() for c in commands], "count": len(commands)})


@devices_api.get("/<device_id>/commands/stale")
@safe_route("Failed to list stale commands")
def list_stale_commands(device_id: str) -> Response:
    minutes = parse_int(request.args.get("minutes"), "minutes")
    if minutes is not None and minutes < 0:
        raise ValidationError("minutes must not be negative", detail={"minutes": minutes})
    older_than = timedelta(minutes=minutes) if minutes is not None else None
    commands = get_command_service().stale_pending(device_id, older_than=older_than)
    return _success({"commands": [c.to_dict() for c in commands], "count": len(commands)})


@devices_api.get("/<device_id>/commands/next")
@safe_route("Failed to fetch next command")
def next_command(device_id: str) -> Response:
    command = get_command_service().next_pending(device_id)
    return _success(command.to_dict() if command else None)


@devices_api.post("/<device_id>/commands/<command_id>/execute")
@safe_route("Failed to execute command")
def execute_command(device_id: str, command_id: str) -> Response:
    """Firmware confirms it applied a command; stores the resulting status."""
    body = ExecuteCommandRequest.model_validate(_json())
    command = get_command_service().get(command_id)
    if command is None or command.device_id != device_id:
        return _fail("Command not found", 404, details={"command_id": command_id})

    state = get_device_state_service()
    status = state.apply_command(command_id, at=body.executed_at)
    applied = status is not None
    if status is None:
        status = state.current(device_id)
    return _success({"command_id": command_id, "applied": applied, "status": status.to_dict()})
