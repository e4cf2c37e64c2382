"""Heartbeat tracking: latest-wins liveness per device."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from app.domain.device import Heartbeat
from app.domain.exceptions import ValidationError
from app.domain.liveness import DEFAULT_LIVENESS_THRESHOLD, evaluate_liveness
from app.enums.device import Liveness
from app.enums.events import ChangeOp, ChangeTable
from app.utils.change_feed import ChangeFeed
from app.utils.time import ensure_utc, utc_now
from infrastructure.database.repositories.heartbeats import HeartbeatRepository

logger = logging.getLogger(__name__)

MAX_STATUS_LENGTH = 64


class HeartbeatService:
    """Record device heartbeats and derive Online/Offline/NeverSeen."""

    def __init__(
        self,
        *,
        heartbeat_repo: HeartbeatRepository,
        change_feed: Optional[ChangeFeed] = None,
        threshold: timedelta = DEFAULT_LIVENESS_THRESHOLD,
    ) -> None:
        self._repo = heartbeat_repo
        self._feed = change_feed
        self._threshold = threshold

    @property
    def threshold(self) -> timedelta:
        return self._threshold

    def record_heartbeat(
        self,
        device_id: str,
        status: str = "online",
        timestamp: datetime | None = None,
    ) -> Heartbeat:
        """Overwrite the stored heartbeat; the last call wins even if its timestamp is older."""
        if not isinstance(status, str) or not status or len(status) > MAX_STATUS_LENGTH:
            raise ValidationError("status must be a short non-empty string", detail={"status": repr(status)})
        last_seen = ensure_utc(timestamp) if timestamp else utc_now()
        heartbeat, inserted = self._repo.record(device_id, last_seen=last_seen, status=status)
        logger.debug("Heartbeat from %s at %s", device_id, heartbeat.last_seen.isoformat())
        if self._feed is not None:
            self._feed.publish(
                ChangeTable.HEARTBEATS,
                ChangeOp.INSERT if inserted else ChangeOp.UPDATE,
                device_id,
                heartbeat.to_dict(),
            )
        return heartbeat

    def get(self, device_id: str) -> Heartbeat | None:
        return self._repo.get(device_id)

    def liveness(self, device_id: str, now: datetime | None = None) -> Liveness:
        heartbeat = self._repo.get(device_id)
        return evaluate_liveness(heartbeat, ensure_utc(now) if now else utc_now(), self._threshold)

    def snapshot(self, device_id: str, now: datetime | None = None) -> dict:
        """Liveness plus the heartbeat it was derived from, ready for JSON."""
        now = ensure_utc(now) if now else utc_now()
        heartbeat = self._repo.get(device_id)
        state = evaluate_liveness(heartbeat, now, self._threshold)
        return {
            "device_id": device_id,
            "liveness": state.value,
            "online": state.is_online,
            "last_seen": heartbeat.last_seen.isoformat() if heartbeat else None,
            "status": heartbeat.status if heartbeat else None,
            "threshold_seconds": int(self._threshold.total_seconds()),
        }
