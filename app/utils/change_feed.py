"""
ChangeFeed: fan-out of store mutations to independent subscribers.

Key invariants (enforced by call sites + tests):
  - Topics are (device_id, ChangeTable) pairs; payloads are ChangeEvent models.
  - Every event carries a full row snapshot, never a delta.
  - Delivery is best-effort per subscriber: a full subscriber queue drops the
    event for that subscriber only. Subscribers recover by re-reading
    ``current()`` after a gap.
  - ``Subscription.close()`` is idempotent and touches no other subscriber.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import defaultdict
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterable, Iterator, Optional

from app.enums.events import ALL_CHANGE_TABLES, ChangeOp, ChangeTable
from app.schemas.events import ChangeEvent

logger = logging.getLogger(__name__)

# Drop warning configuration
_DROP_WARNING_THRESHOLD = 10  # Log summary every N drops
_DROP_WARNING_INTERVAL_SECONDS = 60  # Minimum seconds between drop summaries

_POLL_INTERVAL_SECONDS = 0.25  # Wake-up interval for blocking consumers

_CLOSED = object()


class Subscription:
    """Cancellable stream of ChangeEvents for one device (or all devices).

    Iterate it to block for events; iteration ends once the subscription is
    closed. ``get()`` and ``drain()`` offer non-blocking access.
    """

    def __init__(
        self,
        feed: "ChangeFeed",
        subscription_id: int,
        device_id: Optional[str],
        tables: frozenset[ChangeTable],
        queue_size: int,
    ) -> None:
        self._feed = feed
        self.id = subscription_id
        self.device_id = device_id
        self.tables = tables
        self._queue: Queue = Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def matches(self, event: ChangeEvent) -> bool:
        if event.table not in self.tables:
            return False
        return self.device_id is None or self.device_id == event.device_id

    def _offer(self, event: ChangeEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except Full:
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Return the next event, or None on timeout / once closed and drained."""
        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        while True:
            if self.closed and self._queue.empty():
                return None
            wait = _POLL_INTERVAL_SECONDS
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
            try:
                if wait <= 0:
                    item = self._queue.get_nowait()
                else:
                    item = self._queue.get(timeout=wait)
            except Empty:
                if deadline is not None and time.monotonic() >= deadline:
                    return None
                continue
            if item is _CLOSED:
                continue
            return item

    def drain(self) -> list[ChangeEvent]:
        """Return every event buffered right now without blocking."""
        events: list[ChangeEvent] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except Empty:
                return events
            if item is not _CLOSED:
                events.append(item)

    def close(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self.closed:
            return
        self._closed.set()
        self._feed._remove(self)
        try:
            # Wake a consumer blocked in get()/iteration.
            self._queue.put_nowait(_CLOSED)
        except Full:
            pass

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            event = self.get()
            if event is None:
                if self.closed:
                    return
                continue
            yield event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ChangeFeed:
    """
    Broadcasts SensorLog, HeartbeatTracker and StateStore mutations.

    One instance is shared through the service container; there is no
    process-wide singleton.
    """

    def __init__(self, queue_size: int = 1024) -> None:
        self._queue_size = queue_size
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscriptions: Dict[int, Subscription] = {}
        self._published = 0
        self._dropped_events = 0
        self._drops_by_table: Dict[str, int] = defaultdict(int)
        self._drops_since_last_warning = 0
        self._last_drop_warning_time = 0.0

    def subscribe(
        self,
        device_id: Optional[str],
        tables: Optional[Iterable[ChangeTable | str]] = None,
    ) -> Subscription:
        """
        Open a subscription.

        Args:
            device_id: Device to follow, or None for every device.
            tables: Subset of tables (defaults to status, readings and heartbeats).
        """
        selected = frozenset(ChangeTable(t) for t in (tables or ALL_CHANGE_TABLES))
        with self._lock:
            subscription = Subscription(
                feed=self,
                subscription_id=next(self._ids),
                device_id=device_id,
                tables=selected,
                queue_size=self._queue_size,
            )
            self._subscriptions[subscription.id] = subscription
        logger.debug(
            "Subscription %s opened (device=%s tables=%s)",
            subscription.id,
            device_id or "*",
            sorted(t.value for t in selected),
        )
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            removed = self._subscriptions.pop(subscription.id, None)
        if removed is not None:
            logger.debug("Subscription %s closed", subscription.id)

    def publish(self, table: ChangeTable, op: ChangeOp, device_id: str, row: dict[str, Any]) -> ChangeEvent:
        """
        Publish a row snapshot to every matching subscriber.

        Args:
            table: Table that changed.
            op: ``insert`` or ``update``.
            device_id: Device the row belongs to.
            row: Full row as a JSON-ready dict.
        """
        event = ChangeEvent(table=table, op=op, device_id=device_id, row=row)
        with self._lock:
            subscribers = [s for s in self._subscriptions.values() if s.matches(event)]
            self._published += 1
        for subscription in subscribers:
            if not subscription._offer(event) and not subscription.closed:
                self._record_drop(event.table.value, subscription)
        return event

    def _record_drop(self, table: str, subscription: Subscription) -> None:
        """Record a dropped event and log periodic warnings."""
        with self._lock:
            subscription.dropped += 1
            self._dropped_events += 1
            self._drops_by_table[table] += 1
            self._drops_since_last_warning += 1

            now = time.time()
            should_warn = (
                self._drops_since_last_warning >= _DROP_WARNING_THRESHOLD
                and (now - self._last_drop_warning_time) >= _DROP_WARNING_INTERVAL_SECONDS
            )
            if not should_warn:
                return
            recent = self._drops_since_last_warning
            self._drops_since_last_warning = 0
            self._last_drop_warning_time = now
            by_table = ", ".join(f"{k}:{v}" for k, v in sorted(self._drops_by_table.items()))

        logger.warning(
            "ChangeFeed dropping events for slow subscribers! queue_size=%d, total_dropped=%d, "
            "recent_drops=%d, last_subscription=%s, by_table=[%s]. "
            "Consider increasing IRRISYNC_CHANGE_FEED_QUEUE_SIZE.",
            self._queue_size,
            self._dropped_events,
            recent,
            subscription.id,
            by_table,
        )

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def get_metrics(self) -> Dict[str, Any]:
        """Return lightweight metrics for health endpoints/logging."""
        with self._lock:
            return {
                "queue_size": self._queue_size,
                "subscribers": len(self._subscriptions),
                "published_events": self._published,
                "dropped_events": self._dropped_events,
                "drops_by_table": dict(self._drops_by_table),
            }
