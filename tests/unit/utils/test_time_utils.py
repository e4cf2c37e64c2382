from datetime import datetime, timedelta, timezone

from app.utils.time import coerce_datetime, ensure_utc, storage_timestamp


def test_storage_timestamp_has_fixed_microsecond_precision():
    value = datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc)
    assert storage_timestamp(value) == "2026-01-01T08:30:00.000000+00:00"


def test_storage_timestamps_sort_lexically_in_time_order():
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    stamps = [storage_timestamp(base + timedelta(microseconds=n)) for n in (0, 1, 999_999, 1_000_000)]
    assert stamps == sorted(stamps)


def test_ensure_utc_treats_naive_as_utc_and_converts_offsets():
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive).tzinfo is timezone.utc
    shifted = datetime(2026, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(shifted) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_coerce_datetime_handles_z_suffix_and_garbage():
    assert coerce_datetime("2026-01-01T00:00:00Z") == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert coerce_datetime("yesterday") is None
    assert coerce_datetime(12345) is None
    assert coerce_datetime(None) is None
