"""
Liveness Rule
=============
Derives Online/Offline/NeverSeen from the latest heartbeat.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from app.domain.device import Heartbeat
from app.enums.device import Liveness

DEFAULT_LIVENESS_THRESHOLD = timedelta(minutes=10)


def evaluate_liveness(
    heartbeat: Heartbeat | None,
    now: datetime,
    threshold: timedelta = DEFAULT_LIVENESS_THRESHOLD,
) -> Liveness:
    """Pure liveness decision.

    Online iff ``now - last_seen < threshold``; an elapsed time exactly equal
    to the threshold is Offline. A heartbeat stamped in the future counts as
    fresh.
    """
    if heartbeat is None:
        return Liveness.NEVER_SEEN
    elapsed = now - heartbeat.last_seen
    if elapsed < threshold:
        return Liveness.ONLINE
    return Liveness.OFFLINE
