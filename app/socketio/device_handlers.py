"""app.socketio.device_handlers

Socket.IO handlers for the ``/devices`` namespace.

Clients join one room per device they observe. Change events are pushed by
EmitterService's ChangeFeed bridge; on join the client receives the current
status so it can re-seed its view after a gap.
"""

import logging

from flask import request
from flask_socketio import join_room, leave_room

from app.blueprints.api._common import get_container, get_identity
from app.extensions import socketio
from app.utils.emitters import SOCKETIO_NAMESPACE_DEVICES, device_room

logger = logging.getLogger(__name__)


def _device_id_from_payload(data) -> str | None:
    device_id = data.get("device_id") if isinstance(data, dict) else None
    if not isinstance(device_id, str) or not device_id.strip():
        return None
    return device_id.strip()


@socketio.on("connect", namespace=SOCKETIO_NAMESPACE_DEVICES)
def handle_devices_connect(auth=None):
    """Reject connections without a session identity."""
    identity = get_identity()
    if identity is None:
        logger.info("Rejected anonymous client on /devices: %s", request.sid)
        return False
    logger.info("Client %s connected to /devices as %s", request.sid, identity.user_id)
    return True


@socketio.on("join_device", namespace=SOCKETIO_NAMESPACE_DEVICES)
def handle_join_device(data):
    container = get_container()
    device_id = _device_id_from_payload(data)
    if device_id is None:
        logger.warning("Client %s sent join_device without device_id", request.sid)
        container.emitter_service.emit_error("device_id is required", room=request.sid)
        return

    join_room(device_room(device_id))
    snapshot = container.device_state_service.current(device_id).to_dict()
    container.emitter_service.emit_subscribed(device_id, snapshot, room=request.sid)
    logger.info("Client %s joined room %s", request.sid, device_room(device_id))


@socketio.on("leave_device", namespace=SOCKETIO_NAMESPACE_DEVICES)
def handle_leave_device(data):
    device_id = _device_id_from_payload(data)
    if device_id is None:
        logger.warning("Client %s sent leave_device without device_id", request.sid)
        return
    leave_room(device_room(device_id))
    logger.info("Client %s left room %s", request.sid, device_room(device_id))


@socketio.on("disconnect", namespace=SOCKETIO_NAMESPACE_DEVICES)
def handle_devices_disconnect(*_args):
    logger.info("Client disconnected from /devices: %s", request.sid)
