from app.enums.events import ChangeOp, ChangeTable
from app.utils.change_feed import ChangeFeed
from app.utils.emitters import SOCKETIO_NAMESPACE_DEVICES, EmitterService, device_room


class FakeSocketIO:
    def __init__(self) -> None:
        self.emits: list[dict] = []
        self.tasks: list[tuple] = []

    def emit(self, event, payload, room=None, namespace="/"):
        self.emits.append(
            {
                "event": event,
                "payload": payload,
                "room": room,
                "namespace": namespace,
            }
        )

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))


class BrokenSocketIO(FakeSocketIO):
    def emit(self, event, payload, room=None, namespace="/"):
        raise RuntimeError("client went away")


def _status_row(pump=True):
    return {"device_id": "esp32_device_1", "pump_status": pump, "automatic_mode": False}


def test_change_event_goes_to_device_room():
    sio = FakeSocketIO()
    emitter = EmitterService(sio=sio)
    feed = ChangeFeed()
    event = feed.publish(ChangeTable.STATUS, ChangeOp.INSERT, "esp32_device_1", _status_row())

    assert emitter.emit_change_event(event) is True

    sent = sio.emits[0]
    assert sent["event"] == "change_event"
    assert sent["room"] == device_room("esp32_device_1") == "device_esp32_device_1"
    assert sent["namespace"] == SOCKETIO_NAMESPACE_DEVICES
    assert sent["payload"]["table"] == "status"
    assert sent["payload"]["op"] == "insert"
    assert sent["payload"]["row"]["pump_status"] is True


def test_bridge_forwards_until_subscription_closes():
    sio = FakeSocketIO()
    emitter = EmitterService(sio=sio)
    feed = ChangeFeed()

    subscription = emitter.start_change_bridge(feed)
    target, args, _ = sio.tasks[0]
    assert args == (subscription,)

    feed.publish(ChangeTable.STATUS, ChangeOp.INSERT, "esp32_device_1", _status_row(True))
    feed.publish(ChangeTable.HEARTBEATS, ChangeOp.INSERT, "esp32_device_2", {"status": "online"})
    emitter.stop_change_bridge()

    assert target(*args) == 2
    assert [e["room"] for e in sio.emits] == ["device_esp32_device_1", "device_esp32_device_2"]
    assert feed.subscriber_count() == 0


def test_start_bridge_twice_reuses_subscription():
    sio = FakeSocketIO()
    emitter = EmitterService(sio=sio)
    feed = ChangeFeed()

    first = emitter.start_change_bridge(feed)
    second = emitter.start_change_bridge(feed)

    assert first is second
    assert len(sio.tasks) == 1
    emitter.stop_change_bridge()


def test_emit_failure_is_logged_not_raised():
    emitter = EmitterService(sio=BrokenSocketIO())
    feed = ChangeFeed()
    event = feed.publish(ChangeTable.STATUS, ChangeOp.UPDATE, "esp32_device_1", _status_row())

    assert emitter.emit_change_event(event) is False
    assert emitter.forwarded == 0


def test_emit_subscribed_and_error_payloads():
    sio = FakeSocketIO()
    emitter = EmitterService(sio=sio)

    emitter.emit_subscribed("esp32_device_1", {"status": "uninitialized"}, room="sid-1")
    emitter.emit_error("device_id is required", room="sid-1")

    assert sio.emits[0]["event"] == "subscribed"
    assert sio.emits[0]["payload"]["device_id"] == "esp32_device_1"
    assert sio.emits[1] == {
        "event": "error",
        "payload": {"message": "device_id is required"},
        "room": "sid-1",
        "namespace": SOCKETIO_NAMESPACE_DEVICES,
    }
