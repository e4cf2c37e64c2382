from datetime import timedelta

import pytest

from app.domain.exceptions import InvalidRangeError, ValidationError
from app.enums.events import ChangeOp, ChangeTable


def test_latest_is_none_before_first_reading(sensor_log, device_id):
    assert sensor_log.latest(device_id) is None
    assert sensor_log.latest_summary(device_id) is None


def test_latest_follows_timestamp_not_insertion_order(sensor_log, device_id, t0):
    sensor_log.append(device_id, 45.0, timestamp=t0 + timedelta(minutes=5))
    sensor_log.append(device_id, 20.0, timestamp=t0)

    latest = sensor_log.latest(device_id)
    assert latest.moisture_percentage == 45.0
    assert latest.timestamp == t0 + timedelta(minutes=5)


@pytest.mark.parametrize("value", [101, -1, 100.01, float("nan"), "50", None, True])
def test_out_of_range_reading_is_rejected_and_not_stored(sensor_log, reading_repo, device_id, value):
    with pytest.raises(InvalidRangeError):
        sensor_log.append(device_id, value)

    assert reading_repo.count(device_id) == 0


@pytest.mark.parametrize("value", [0, 100, 29.99])
def test_boundary_values_are_accepted(sensor_log, device_id, value):
    assert sensor_log.append(device_id, value).moisture_percentage == float(value)


def test_digital_flag_is_derived_when_omitted(sensor_log, device_id):
    assert sensor_log.append(device_id, 12.0).moisture_digital is True
    assert sensor_log.append(device_id, 30.0).moisture_digital is False
    assert sensor_log.append(device_id, 12.0, moisture_digital=False).moisture_digital is False


def test_non_boolean_digital_flag_is_rejected(sensor_log, device_id):
    with pytest.raises(ValidationError):
        sensor_log.append(device_id, 40.0, moisture_digital="yes")


def test_first_reading_registers_unknown_device(sensor_log, device_repo):
    sensor_log.append("new_probe", 55.0)
    assert device_repo.get("new_probe") is not None


def test_history_bounds_are_inclusive_and_ordered(sensor_log, device_id, t0):
    for minutes in (30, 0, 10, 20, 40):
        sensor_log.append(device_id, 50.0 + minutes / 10, timestamp=t0 + timedelta(minutes=minutes))

    rows = sensor_log.history(device_id, t0 + timedelta(minutes=10), t0 + timedelta(minutes=30))

    assert [r.timestamp - t0 for r in rows] == [timedelta(minutes=m) for m in (10, 20, 30)]


def test_history_respects_limit_and_cap(sensor_log, device_id, t0):
    for i in range(60):
        sensor_log.append(device_id, 40.0, timestamp=t0 + timedelta(seconds=i))
    end = t0 + timedelta(minutes=5)

    assert len(sensor_log.history(device_id, t0, end, limit=5)) == 5
    # The fixture caps history at 50 rows.
    assert len(sensor_log.history(device_id, t0, end)) == 50
    assert len(sensor_log.history(device_id, t0, end, limit=1000)) == 50


def test_capped_history_keeps_newest_rows(sensor_log, device_id, t0):
    # The fixture caps history at 50 rows.
    for i in range(60):
        sensor_log.append(device_id, 40.0, timestamp=t0 + timedelta(minutes=i))
    end = t0 + timedelta(hours=2)

    page = sensor_log.history_page(device_id, t0, end)

    assert page.truncated is True
    assert len(page.readings) == 50
    assert page.readings[-1] == sensor_log.latest(device_id)
    assert page.oldest_timestamp == t0 + timedelta(minutes=10)
    assert [r.timestamp for r in page.readings] == sorted(r.timestamp for r in page.readings)

    older = sensor_log.history_page(device_id, t0, page.oldest_timestamp - timedelta(microseconds=1))
    assert older.truncated is False
    assert len(older.readings) == 10


def test_uncapped_history_is_not_truncated(sensor_log, device_id, t0):
    sensor_log.append(device_id, 40.0, timestamp=t0)

    page = sensor_log.history_page(device_id, t0, t0)

    assert page.truncated is False
    assert page.to_dict()["count"] == 1


def test_recent_window_over_cap_ends_at_latest(sensor_log, device_id, t0):
    for i in range(60):
        sensor_log.append(device_id, 40.0, timestamp=t0 - timedelta(minutes=i))

    rows = sensor_log.recent(device_id, "24h", now=t0)

    assert len(rows) == 50
    assert rows[-1].timestamp == t0


def test_history_rejects_inverted_range_and_bad_limit(sensor_log, device_id, t0):
    with pytest.raises(ValidationError):
        sensor_log.history(device_id, t0, t0 - timedelta(seconds=1))
    with pytest.raises(ValidationError):
        sensor_log.history(device_id, t0, t0, limit=0)


def test_history_for_unknown_device_is_empty(sensor_log, t0):
    assert sensor_log.history("nobody", t0 - timedelta(days=1), t0) == []


def test_recent_window(sensor_log, device_id, t0):
    sensor_log.append(device_id, 20.0, timestamp=t0 - timedelta(hours=30))
    sensor_log.append(device_id, 60.0, timestamp=t0 - timedelta(hours=2))

    assert [r.moisture_percentage for r in sensor_log.recent(device_id, "24h", now=t0)] == [60.0]
    assert len(sensor_log.recent(device_id, "7d", now=t0)) == 2
    with pytest.raises(ValidationError):
        sensor_log.recent(device_id, "1y", now=t0)


def test_latest_summary_includes_band(sensor_log, device_id, t0):
    sensor_log.append(device_id, 85.0, timestamp=t0)

    summary = sensor_log.latest_summary(device_id)

    assert summary["band"] == "wet"
    assert summary["needs_water"] is False


def test_append_publishes_reading_event(sensor_log, change_feed, device_id):
    sub = change_feed.subscribe(device_id, tables=[ChangeTable.READINGS])

    reading = sensor_log.append(device_id, 33.0)

    event = sub.get(timeout=1)
    assert event.op is ChangeOp.INSERT
    assert event.row == reading.to_dict()
