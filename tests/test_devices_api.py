"""End-to-end tests for the /api/devices blueprint and the /devices namespace."""

import pytest

from app import create_app, socketio

DEVICE = "esp32_device_1"


@pytest.fixture()
def app(tmp_path):
    flask_app = create_app(
        {
            "database_path": str(tmp_path / "api.db"),
            "audit_log_path": str(tmp_path / "logs" / "audit.log"),
            "log_path": str(tmp_path / "logs" / "irrisync.log"),
            "enable_socketio_bridge": False,
        }
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.config["SHUTDOWN"]("test teardown")


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, user_id="admin-1", role="admin"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["user_role"] = role


@pytest.fixture()
def admin_client(client):
    _login(client)
    return client


@pytest.fixture()
def registered(admin_client):
    response = admin_client.post("/api/devices", json={"device_id": DEVICE, "display_name": "Greenhouse"})
    assert response.status_code == 201
    return DEVICE


def _enqueue(client, pump=True, auto=False):
    response = client.post(f"/api/devices/{DEVICE}/commands", json={"pump_control": pump, "automatic_mode": auto})
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]["command_id"]


# ==================== Registry ====================


def test_register_requires_session(client):
    response = client.post("/api/devices", json={"device_id": DEVICE})
    assert response.status_code == 401
    assert response.get_json()["ok"] is False


def test_register_requires_admin(client):
    _login(client, "viewer-1", "user")
    response = client.post("/api/devices", json={"device_id": DEVICE})
    assert response.status_code == 403
    assert response.get_json()["details"]["action"] == "register_device"


def test_register_and_fetch(registered, client):
    device = client.get(f"/api/devices/{DEVICE}").get_json()["data"]
    assert device["display_name"] == "Greenhouse"
    assert device["owner_id"] == "admin-1"

    listing = client.get("/api/devices").get_json()["data"]
    assert listing["count"] == 1


def test_register_rejects_bad_payload(admin_client):
    response = admin_client.post("/api/devices", json={"device_id": ""})
    assert response.status_code == 400
    assert response.get_json()["details"]["errors"][0]["field"] == "device_id"


def test_unknown_device_is_404(client):
    assert client.get("/api/devices/nope").status_code == 404


def test_status_is_uninitialized_before_execution(registered, client):
    data = client.get(f"/api/devices/{DEVICE}/status").get_json()["data"]
    assert data == {"device_id": DEVICE, "status": "uninitialized"}


def test_firmware_status_report(client):
    response = client.put(
        f"/api/devices/{DEVICE}/status",
        json={"pump_status": True, "automatic_mode": True, "updated_at": "2026-01-01T08:00:00Z"},
    )
    assert response.status_code == 200

    data = client.get(f"/api/devices/{DEVICE}/status").get_json()["data"]
    assert data["pump_status"] is True
    assert data["automatic_mode"] is True
    assert data["updated_at"].startswith("2026-01-01T08:00:00")

    assert client.put(f"/api/devices/{DEVICE}/status", json={"pump_status": "yes"}).status_code == 400


# ==================== Commands ====================


def test_enqueue_for_unknown_device_is_404(admin_client):
    response = admin_client.post("/api/devices/ghost/commands", json={"pump_control": True, "automatic_mode": False})
    assert response.status_code == 404


def test_enqueue_rejects_non_boolean(registered, admin_client):
    response = admin_client.post(f"/api/devices/{DEVICE}/commands", json={"pump_control": "on", "automatic_mode": False})
    assert response.status_code == 400


def test_enqueue_as_viewer_is_403(registered, client):
    _login(client, "viewer-1", "user")
    response = client.post(f"/api/devices/{DEVICE}/commands", json={"pump_control": True, "automatic_mode": False})
    assert response.status_code == 403
    listing = client.get(f"/api/devices/{DEVICE}/commands").get_json()["data"]
    assert listing["count"] == 0


def test_firmware_flow(registered, admin_client):
    first = _enqueue(admin_client, pump=True)
    second = _enqueue(admin_client, pump=False, auto=True)

    pending = admin_client.get(f"/api/devices/{DEVICE}/commands?pending=1").get_json()["data"]
    assert [c["id"] for c in pending["commands"]] == [first, second]

    nxt = admin_client.get(f"/api/devices/{DEVICE}/commands/next").get_json()["data"]
    assert nxt["id"] == first

    conflict = admin_client.post(f"/api/devices/{DEVICE}/commands/{second}/execute", json={})
    assert conflict.status_code == 409
    assert conflict.get_json()["details"]["blocking_command_id"] == first

    done = admin_client.post(f"/api/devices/{DEVICE}/commands/{first}/execute", json={}).get_json()["data"]
    assert done["applied"] is True
    assert done["status"]["pump_status"] is True

    admin_client.post(f"/api/devices/{DEVICE}/commands/{second}/execute", json={})
    again = admin_client.post(f"/api/devices/{DEVICE}/commands/{second}/execute", json={}).get_json()["data"]
    assert again["applied"] is False
    assert again["status"]["pump_status"] is False
    assert again["status"]["automatic_mode"] is True

    assert admin_client.get(f"/api/devices/{DEVICE}/commands/next").get_json()["data"] is None


def test_execute_command_of_other_device_is_404(registered, admin_client):
    command_id = _enqueue(admin_client)
    response = admin_client.post(f"/api/devices/other/commands/{command_id}/execute", json={})
    assert response.status_code == 404


def test_stale_commands_rejects_negative_minutes(registered, admin_client):
    _enqueue(admin_client)
    assert admin_client.get(f"/api/devices/{DEVICE}/commands/stale?minutes=-1").status_code == 400
    stale = admin_client.get(f"/api/devices/{DEVICE}/commands/stale?minutes=0").get_json()["data"]
    assert stale["count"] == 1


# ==================== Telemetry ====================


def test_heartbeat_and_liveness(client):
    before = client.get(f"/api/devices/{DEVICE}/liveness").get_json()["data"]
    assert before["liveness"] == "never_seen"

    assert client.post(f"/api/devices/{DEVICE}/heartbeat", json={"status": "online"}).status_code == 200

    after = client.get(f"/api/devices/{DEVICE}/liveness").get_json()["data"]
    assert after["online"] is True
    assert after["threshold_seconds"] == 600


def test_readings_roundtrip(client):
    created = client.post(
        f"/api/devices/{DEVICE}/readings",
        json={"moisture_percentage": 22, "timestamp": "2026-01-01T10:00:00Z"},
    )
    assert created.status_code == 201
    assert created.get_json()["data"]["band"] == "dry"
    assert created.get_json()["data"]["moisture_digital"] is True

    client.post(
        f"/api/devices/{DEVICE}/readings",
        json={"moisture_percentage": 61, "timestamp": "2026-01-01T09:00:00Z"},
    )

    latest = client.get(f"/api/devices/{DEVICE}/readings/latest").get_json()["data"]
    assert latest["moisture_percentage"] == 22

    history = client.get(
        f"/api/devices/{DEVICE}/readings?start_ts=2026-01-01T09:00:00Z&end_ts=2026-01-01T10:00:00Z"
    ).get_json()["data"]
    assert [r["moisture_percentage"] for r in history["readings"]] == [61, 22]
    assert history["truncated"] is False
    assert history["oldest_ts"].startswith("2026-01-01T09:00:00")


def test_history_limit_keeps_newest_and_flags_truncation(client):
    for minute in range(3):
        client.post(
            f"/api/devices/{DEVICE}/readings",
            json={"moisture_percentage": 40 + minute, "timestamp": f"2026-01-01T10:0{minute}:00Z"},
        )

    history = client.get(
        f"/api/devices/{DEVICE}/readings?start_ts=2026-01-01T10:00:00Z&end_ts=2026-01-01T11:00:00Z&limit=2"
    ).get_json()["data"]

    assert [r["moisture_percentage"] for r in history["readings"]] == [41, 42]
    assert history["truncated"] is True


@pytest.mark.parametrize("value", [101, -1, True, False, "50", None])
def test_malformed_reading_is_400(client, value):
    response = client.post(f"/api/devices/{DEVICE}/readings", json={"moisture_percentage": value})
    assert response.status_code == 400
    assert client.get(f"/api/devices/{DEVICE}/readings/latest").get_json()["data"] is None


@pytest.mark.parametrize(
    "query",
    [
        "",
        "?window=24h&start_ts=2026-01-01T00:00:00Z",
        "?window=1y",
        "?start_ts=yesterday",
        "?start_ts=2026-01-02T00:00:00Z&end_ts=2026-01-01T00:00:00Z",
        "?start_ts=2026-01-01T00:00:00Z&limit=zero",
    ],
)
def test_bad_history_queries_are_400(client, query):
    assert client.get(f"/api/devices/{DEVICE}/readings{query}").status_code == 400


# ==================== Socket.IO ====================


def test_anonymous_socket_is_rejected(app):
    sio_client = socketio.test_client(app, namespace="/devices")
    assert not sio_client.is_connected(namespace="/devices")


def test_join_device_sends_current_status(app, client):
    _login(client)
    sio_client = socketio.test_client(app, namespace="/devices", flask_test_client=client)
    assert sio_client.is_connected(namespace="/devices")

    sio_client.emit("join_device", {"device_id": DEVICE}, namespace="/devices")
    received = sio_client.get_received(namespace="/devices")

    subscribed = [m for m in received if m["name"] == "subscribed"]
    assert subscribed[0]["args"][0] == {
        "device_id": DEVICE,
        "status": {"device_id": DEVICE, "status": "uninitialized"},
    }

    sio_client.emit("join_device", {}, namespace="/devices")
    errors = [m for m in sio_client.get_received(namespace="/devices") if m["name"] == "error"]
    assert errors[0]["args"][0]["message"] == "device_id is required"
    sio_client.disconnect(namespace="/devices")
