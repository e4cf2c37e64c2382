from datetime import datetime, timedelta, timezone

from app.domain.device import Heartbeat
from app.domain.liveness import DEFAULT_LIVENESS_THRESHOLD, evaluate_liveness
from app.enums.device import Liveness

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _heartbeat(last_seen=T0):
    return Heartbeat(device_id="esp32_device_1", last_seen=last_seen, status="online")


def test_default_threshold_is_ten_minutes():
    assert DEFAULT_LIVENESS_THRESHOLD == timedelta(seconds=600)


def test_no_heartbeat_is_never_seen():
    assert evaluate_liveness(None, T0) is Liveness.NEVER_SEEN
    assert not Liveness.NEVER_SEEN.is_online


def test_online_just_below_threshold():
    now = T0 + timedelta(seconds=599)
    assert evaluate_liveness(_heartbeat(), now) is Liveness.ONLINE


def test_exactly_threshold_is_offline():
    now = T0 + timedelta(seconds=600)
    assert evaluate_liveness(_heartbeat(), now) is Liveness.OFFLINE


def test_custom_threshold():
    now = T0 + timedelta(seconds=45)
    assert evaluate_liveness(_heartbeat(), now, timedelta(seconds=30)) is Liveness.OFFLINE
    assert evaluate_liveness(_heartbeat(), now, timedelta(seconds=60)) is Liveness.ONLINE


def test_future_heartbeat_counts_as_fresh():
    assert evaluate_liveness(_heartbeat(T0 + timedelta(minutes=5)), T0) is Liveness.ONLINE
