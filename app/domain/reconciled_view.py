"""
Reconciled Pump View
====================
Client-side adapter that keeps a local guess of a device's pump state.

Merge rule (last-authoritative-wins):
    - Issuing a command applies the intended state locally at once and tags
      the view as optimistic with the issuance time.
    - Any ``status`` change event for the device overwrites the view and
      clears the optimistic tag, whether or not it matches the guess and
      regardless of when the event was produced relative to the issuance.

No vector-clock ordering is attempted between client intent and device
confirmation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from app.domain.device import DeviceStatus, Uninitialized
from app.domain.exceptions import ValidationError
from app.domain.identity import Identity
from app.enums.events import ChangeTable
from app.schemas.events import ChangeEvent
from app.utils.time import coerce_datetime, utc_now

logger = logging.getLogger(__name__)


class CommandIssuer(Protocol):
    def enqueue(
        self,
        device_id: str,
        pump_control: bool,
        automatic_mode: bool,
        issuer: Identity,
    ) -> str: ...


@dataclass(frozen=True)
class PumpView:
    """What a client currently displays for a device."""

    pump_status: bool
    automatic_mode: bool
    updated_at: datetime
    optimistic_since: Optional[datetime] = None

    @property
    def is_optimistic(self) -> bool:
        return self.optimistic_since is not None


class ReconciledView:
    """Local view of one device, merged from optimistic intents and feed events."""

    def __init__(self, device_id: str, snapshot: DeviceStatus | Uninitialized | None = None) -> None:
        self.device_id = device_id
        self._view: PumpView | None = None
        self.pending_command_id: str | None = None
        if isinstance(snapshot, DeviceStatus):
            self._view = PumpView(
                pump_status=snapshot.pump_status,
                automatic_mode=snapshot.automatic_mode,
                updated_at=snapshot.updated_at,
            )

    @property
    def current(self) -> PumpView | None:
        """Current view, or None while nothing is known about the device."""
        return self._view

    @property
    def is_optimistic(self) -> bool:
        return self._view is not None and self._view.is_optimistic

    def apply_optimistic(
        self,
        pump_status: bool,
        automatic_mode: bool,
        issued_at: datetime | None = None,
    ) -> PumpView:
        """Show the intended state immediately, tagged with the issuance time."""
        issued_at = issued_at or utc_now()
        self._view = PumpView(
            pump_status=pump_status,
            automatic_mode=automatic_mode,
            updated_at=issued_at,
            optimistic_since=issued_at,
        )
        return self._view

    def issue(
        self,
        queue: CommandIssuer,
        identity: Identity,
        *,
        pump_control: bool | None = None,
        automatic_mode: bool | None = None,
    ) -> str:
        """Enqueue a command and apply it optimistically.

        A field left as None keeps the value currently shown, so toggling the
        pump leaves the mode untouched and vice versa. Nothing is applied
        locally when the enqueue is rejected.
        """
        if pump_control is None or automatic_mode is None:
            if self._view is None:
                raise ValidationError(
                    "Both pump_control and automatic_mode are required before any status is known",
                    detail={"device_id": self.device_id},
                )
            if pump_control is None:
                pump_control = self._view.pump_status
            if automatic_mode is None:
                automatic_mode = self._view.automatic_mode

        command_id = queue.enqueue(self.device_id, pump_control, automatic_mode, identity)
        self.pending_command_id = command_id
        self.apply_optimistic(pump_control, automatic_mode)
        return command_id

    def toggle_pump(self, queue: CommandIssuer, identity: Identity) -> str:
        if self._view is None:
            raise ValidationError("Cannot toggle pump before any status is known")
        return self.issue(queue, identity, pump_control=not self._view.pump_status)

    def toggle_mode(self, queue: CommandIssuer, identity: Identity) -> str:
        if self._view is None:
            raise ValidationError("Cannot toggle mode before any status is known")
        return self.issue(queue, identity, automatic_mode=not self._view.automatic_mode)

    def apply_event(self, event: ChangeEvent) -> bool:
        """Overwrite the view with an authoritative status event.

        Returns True when the event was applied; events for other tables or
        devices are ignored.
        """
        if event.table is not ChangeTable.STATUS or event.device_id != self.device_id:
            return False

        row = event.row
        updated_at = coerce_datetime(row.get("updated_at")) or utc_now()
        if self.is_optimistic and self._view is not None:
            if (self._view.pump_status, self._view.automatic_mode) != (
                bool(row["pump_status"]),
                bool(row["automatic_mode"]),
            ):
                logger.debug(
                    "Authoritative status for %s overrides optimistic guess (since %s)",
                    self.device_id,
                    self._view.optimistic_since,
                )
        self._view = PumpView(
            pump_status=bool(row["pump_status"]),
            automatic_mode=bool(row["automatic_mode"]),
            updated_at=updated_at,
        )
        self.pending_command_id = None
        return True

    def apply_snapshot(self, snapshot: DeviceStatus | Uninitialized) -> None:
        """Re-seed from a fresh ``current()`` read, e.g. after resubscribing.

        An ``Uninitialized`` snapshot leaves any optimistic guess in place.
        """
        if isinstance(snapshot, DeviceStatus):
            self._view = PumpView(
                pump_status=snapshot.pump_status,
                automatic_mode=snapshot.automatic_mode,
                updated_at=snapshot.updated_at,
            )
            self.pending_command_id = None

    def follow(self, events: Iterable[ChangeEvent], *, max_events: int | None = None) -> int:
        """Apply events from a stream (e.g. a feed subscription); returns how many applied."""
        applied = 0
        for seen, event in enumerate(events, start=1):
            if self.apply_event(event):
                applied += 1
            if max_events is not None and seen >= max_events:
                break
        return applied
