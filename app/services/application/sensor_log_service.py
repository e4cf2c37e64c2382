"""
Sensor log service.

Append-only soil moisture readings per device. Out-of-range percentages are
rejected before anything is written. ``latest`` follows the reading
timestamp, not insertion order, so a late-arriving older reading never
replaces the newest one.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from app.domain.exceptions import ValidationError
from app.domain.moisture import DEFAULT_DRY_THRESHOLD, needs_water, validate_percentage
from app.domain.reading import ReadingHistory, SensorReading
from app.enums.device import HistoryWindow
from app.enums.events import ChangeOp, ChangeTable
from app.utils.change_feed import ChangeFeed
from app.utils.time import ensure_utc, utc_now
from infrastructure.database.pagination import clamp_limit
from infrastructure.database.repositories.readings import ReadingRepository

logger = logging.getLogger(__name__)


class SensorLogService:
    """Append, query and summarize moisture readings."""

    def __init__(
        self,
        *,
        reading_repo: ReadingRepository,
        change_feed: Optional[ChangeFeed] = None,
        dry_threshold: float = DEFAULT_DRY_THRESHOLD,
        max_rows: int = 10_000,
    ) -> None:
        self._repo = reading_repo
        self._feed = change_feed
        self._dry_threshold = dry_threshold
        self._max_rows = max_rows

    def append(
        self,
        device_id: str,
        moisture_percentage: float,
        moisture_digital: bool | None = None,
        timestamp: datetime | None = None,
    ) -> SensorReading:
        """
        Validate and store a reading.

        Args:
            device_id: Reporting device (registered on first contact)
            moisture_percentage: Value in [0, 100]
            moisture_digital: Device's dry flag; derived from the dry threshold when omitted
            timestamp: Measurement time; server time when omitted

        Raises:
            InvalidRangeError: percentage outside [0, 100] or not a number
        """
        value = validate_percentage(moisture_percentage)
        if moisture_digital is None:
            moisture_digital = needs_water(value, self._dry_threshold)
        elif not isinstance(moisture_digital, bool):
            raise ValidationError("moisture_digital must be a boolean", detail={"value": repr(moisture_digital)})

        reading = self._repo.append(
            device_id,
            timestamp=ensure_utc(timestamp) if timestamp else utc_now(),
            moisture_percentage=value,
            moisture_digital=moisture_digital,
        )
        logger.debug("Reading %s from %s: %.1f%%", reading.id, device_id, value)
        if self._feed is not None:
            self._feed.publish(ChangeTable.READINGS, ChangeOp.INSERT, device_id, reading.to_dict())
        return reading

    def latest(self, device_id: str) -> SensorReading | None:
        return self._repo.latest(device_id)

    def history(
        self,
        device_id: str,
        start: datetime,
        end: datetime,
        limit: int | None = None,
    ) -> list[SensorReading]:
        """Readings with ``start <= timestamp <= end``, oldest first.

        At most ``limit`` rows (capped by the configured maximum) are returned;
        the newest ones win. Use ``history_page`` to learn whether rows were cut.
        """
        return list(self.history_page(device_id, start, end, limit).readings)

    def history_page(
        self,
        device_id: str,
        start: datetime,
        end: datetime,
        limit: int | None = None,
    ) -> ReadingHistory:
        start = ensure_utc(start)
        end = ensure_utc(end)
        if start > end:
            raise ValidationError(
                "start must not be after end",
                detail={"start": start.isoformat(), "end": end.isoformat()},
            )
        try:
            validated = clamp_limit(limit, maximum=self._max_rows)
        except ValueError as exc:
            raise ValidationError(str(exc), detail={"limit": limit}) from exc
        page = self._repo.between(device_id, start, end, limit=validated)
        if page.truncated:
            logger.info(
                "History for %s truncated to newest %d rows (%s..%s)",
                device_id,
                validated,
                start.isoformat(),
                end.isoformat(),
            )
        return page

    def window_range(
        self,
        window: HistoryWindow | str,
        now: datetime | None = None,
    ) -> tuple[datetime, datetime]:
        """``(start, end)`` for a preset window ending at ``now``."""
        try:
            window = HistoryWindow(window)
        except ValueError as exc:
            allowed = ", ".join(w.value for w in HistoryWindow)
            raise ValidationError(f"window must be one of {allowed}", detail={"window": str(window)}) from exc
        end = ensure_utc(now) if now else utc_now()
        return end - window.delta, end

    def recent(
        self,
        device_id: str,
        window: HistoryWindow | str = HistoryWindow.LAST_24_HOURS,
        now: datetime | None = None,
    ) -> list[SensorReading]:
        """History over a preset window ending at ``now``."""
        start, end = self.window_range(window, now)
        return self.history(device_id, start, end)

    def latest_summary(self, device_id: str) -> dict[str, Any] | None:
        """Latest reading with its moisture band, or None before the first reading."""
        reading = self._repo.latest(device_id)
        if reading is None:
            return None
        summary = reading.to_dict()
        summary["band"] = reading.band.value
        summary["needs_water"] = reading.moisture_digital
        return summary
