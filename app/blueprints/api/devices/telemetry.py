"""
Device telemetry endpoints.

- POST /api/devices/<device_id>/heartbeat
- GET  /api/devices/<device_id>/liveness
- POST /api/devices/<device_id>/readings
- GET  /api/devices/<device_id>/readings          ``?start_ts=&end_ts=&limit=`` or ``?window=24h``; newest rows win when capped
- GET  /api/devices/<device_id>/readings/latest
"""

from __future__ import annotations

import logging

from flask import Response, request

from app.blueprints.api._common import (
    get_heartbeat_service,
    get_json as _json,
    get_sensor_log_service,
    parse_datetime,
    parse_int,
    success as _success,
)
from app.domain.exceptions import ValidationError
from app.schemas import AppendReadingRequest, HeartbeatRequest
from app.utils.http import safe_route
from app.utils.time import utc_now

from . import devices_api

logger = logging.getLogger(__name__)


@devices_api.post("/<device_id>/heartbeat")
@safe_route("Failed to record heartbeat")
def record_heartbeat(device_id: str) -> Response:
    body = HeartbeatRequest.model_validate(_json())
    heartbeat = get_heartbeat_service().record_heartbeat(device_id, body.status, body.timestamp)
    return _success(heartbeat.to_dict())


@devices_api.get("/<device_id>/liveness")
@safe_route("Failed to get liveness")
def get_liveness(device_id: str) -> Response:
    return _success(get_heartbeat_service().snapshot(device_id))


@devices_api.post("/<device_id>/readings")
@safe_route("Failed to store reading")
def append_reading(device_id: str) -> Response:
    body = AppendReadingRequest.model_validate(_json())
    reading = get_sensor_log_service().append(
        device_id,
        body.moisture_percentage,
        moisture_digital=body.moisture_digital,
        timestamp=body.timestamp,
    )
    payload = reading.to_dict()
    payload["band"] = reading.band.value
    return _success(payload, 201)


@devices_api.get("/<device_id>/readings/latest")
@safe_route("Failed to get latest reading")
def latest_reading(device_id: str) -> Response:
    return _success(get_sensor_log_service().latest_summary(device_id))


@devices_api.get("/<device_id>/readings")
@safe_route("Failed to get reading history")
def reading_history(device_id: str) -> Response:
    service = get_sensor_log_service()
    window = request.args.get("window")
    start = parse_datetime(request.args.get("start_ts"), "start_ts")
    end = parse_datetime(request.args.get("end_ts"), "end_ts")

    if window:
        if start is not None:
            raise ValidationError("Use either window or start_ts/end_ts, not both")
        start, end = service.window_range(window, now=end)
    elif start is None:
        raise ValidationError("start_ts or window is required")

    page = service.history_page(
        device_id,
        start,
        end or utc_now(),
        limit=parse_int(request.args.get("limit"), "limit"),
    )
    return _success(page.to_dict())
