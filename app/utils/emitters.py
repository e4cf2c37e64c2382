"""
WebSocket Emitters
=====================================

Purpose:
    Forward ChangeFeed events to Socket.IO clients.

Features:
- One room per device (``device_<device_id>``) in the ``/devices`` namespace.
- A background task drains an all-devices feed subscription and emits each
  event as ``change_event`` with the full row snapshot.
- Error and subscription acknowledgements for the namespace handlers.

Usage:
    Instantiate EmitterService with the SocketIO instance, then call
    start_change_bridge(feed) once the service container exists.
"""

import logging
import threading
from typing import Any

from flask_socketio import SocketIO

from app.enums.events import WebSocketEvent
from app.schemas.events import ChangeEvent
from app.utils.change_feed import ChangeFeed, Subscription

logger = logging.getLogger("emitters")

# WebSocket event names (single source of truth)
WS_EVENT_CHANGE = WebSocketEvent.CHANGE_EVENT.value
WS_EVENT_SUBSCRIBED = WebSocketEvent.SUBSCRIBED.value
WS_EVENT_ERROR = WebSocketEvent.ERROR.value

# Socket.IO Namespace Constants
SOCKETIO_NAMESPACE_DEVICES = "/devices"


def device_room(device_id: str) -> str:
    return f"device_{device_id}"


class EmitterService:
    """
    Centralized WebSocket Emitter Service.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
    """

    def __init__(self, sio: SocketIO, namespace: str = SOCKETIO_NAMESPACE_DEVICES):
        self.sio = sio
        self.namespace = namespace
        self._subscription: Subscription | None = None
        self._lock = threading.Lock()
        self.forwarded = 0

    def emit(
        self,
        event: str,
        payload: dict,
        room: str | None = None,
        namespace: str | None = None,
    ) -> bool:
        """
        Emit a Socket.IO event.

        Args:
            event (str): Event name (e.g., "change_event").
            payload (dict): JSON serializable data to send.
            room (Optional[str]): Socket.IO room identifier. Broadcasts if None.
            namespace (str): Socket.IO namespace; defaults to the devices namespace.

        Returns:
            True when the emit succeeded.
        """
        namespace = namespace or self.namespace
        try:
            self.sio.emit(event, payload, room=room, namespace=namespace)
            logger.debug("Emitted event='%s' namespace='%s' room='%s'", event, namespace, room or "broadcast")
            return True
        except Exception as e:
            # A broken client connection must not stop the bridge.
            logger.exception("[Emitter] Failed to emit event '%s' to room '%s': %s", event, room, e)
            return False

    def emit_change_event(self, event: ChangeEvent) -> bool:
        """Send one ChangeEvent to the device's room."""
        sent = self.emit(
            WS_EVENT_CHANGE,
            event.model_dump(mode="json"),
            room=device_room(event.device_id),
        )
        if sent:
            self.forwarded += 1
        return sent

    def emit_subscribed(self, device_id: str, snapshot: dict[str, Any], room: str | None = None) -> None:
        """Acknowledge a join with the current status so the client can re-seed."""
        self.emit(
            WS_EVENT_SUBSCRIBED,
            {"device_id": device_id, "status": snapshot},
            room=room,
        )

    def emit_error(self, message: str, room: str | None = None) -> None:
        """
        Emit an error event.

        Args:
            message (str): Error message.
            room (str): Room name (usually the requesting client's sid).
        """
        self.emit(WS_EVENT_ERROR, {"message": message}, room=room)
        logger.info("[Emitter] Error event emitted to room='%s'", room or "broadcast")

    # --- ChangeFeed bridge ----------------------------------------------------
    def start_change_bridge(self, feed: ChangeFeed) -> Subscription:
        """Subscribe to every device and forward events in a background task."""
        with self._lock:
            if self._subscription is not None and not self._subscription.closed:
                return self._subscription
            subscription = feed.subscribe(None)
            self._subscription = subscription
        self.sio.start_background_task(self.forward, subscription)
        logger.info("ChangeFeed bridge started (subscription %s)", subscription.id)
        return subscription

    def forward(self, subscription: Subscription) -> int:
        """Emit events from ``subscription`` until it is closed; returns how many were sent."""
        sent = 0
        for event in subscription:
            if self.emit_change_event(event):
                sent += 1
        logger.info("ChangeFeed bridge stopped after %d events", sent)
        return sent

    def stop_change_bridge(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
