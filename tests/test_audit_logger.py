import json

from infrastructure.logging.audit import AuditLogger


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_log_event_writes_one_json_record(tmp_path):
    path = tmp_path / "logs" / "audit.log"
    audit = AuditLogger(str(path))
    try:
        audit.log_event("admin-1", "enqueue_command", "device:esp32_device_1", "queued", command_id="c-1")
    finally:
        audit.close()

    [record] = _lines(path)
    assert record["actor"] == "admin-1"
    assert record["action"] == "enqueue_command"
    assert record["resource"] == "device:esp32_device_1"
    assert record["outcome"] == "queued"
    assert record["meta"] == {"command_id": "c-1"}
    assert "ts" in record


def test_meta_is_omitted_without_metadata(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(str(path))
    try:
        audit.log_event("viewer-1", "register_device", "device", "denied")
    finally:
        audit.close()

    assert "meta" not in _lines(path)[0]


def test_second_logger_on_same_path_shares_handler(tmp_path):
    path = tmp_path / "audit.log"
    first = AuditLogger(str(path))
    second = AuditLogger(str(path))
    try:
        second.log_event("a", "b", "c", "d")
        second.close()
        first.log_event("e", "f", "g", "h")
    finally:
        first.close()

    assert [r["actor"] for r in _lines(path)] == ["a", "e"]


def test_audit_records_do_not_reach_root_logger(tmp_path, caplog):
    audit = AuditLogger(str(tmp_path / "audit.log"))
    try:
        audit.log_event("admin-1", "register_device", "device:x", "created")
    finally:
        audit.close()

    assert not any(r.name == AuditLogger.LOGGER_NAME for r in caplog.records)
