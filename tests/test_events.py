import asyncio

from Location_module.Location_events import LocationEventBus, QueueSubscriber
from Location_module.Location_schema import LiveUpdate


def _update(**overrides):
    fields = {"animal_id": 7, "latitude": 40.1, "longitude": -73.9}
    fields.update(overrides)
    return LiveUpdate(**fields)


def test_publish_fans_out_to_every_subscriber():
    bus = LocationEventBus()
    first, second = [], []
    bus.subscribe(first.append)
    bus.subscribe(second.append)

    assert bus.publish(_update()) is True
    assert len(first) == len(second) == 1


def test_subscriber_error_is_isolated():
    bus = LocationEventBus()
    received = []

    def explode(event):
        raise RuntimeError("boom")

    bus.subscribe(explode)
    bus.subscribe(received.append)

    assert bus.publish(_update()) is False
    assert len(received) == 1


def test_unsubscribe_stops_delivery():
    bus = LocationEventBus()
    received = []
    token = bus.subscribe(received.append)

    assert bus.unsubscribe(token) is True
    assert bus.unsubscribe(token) is False
    assert bus.subscriber_count == 0

    bus.publish(_update())
    assert received == []


def test_publish_without_subscribers_succeeds():
    assert LocationEventBus().publish(_update()) is True


def test_queue_subscriber_drops_when_full():
    async def scenario():
        subscriber = QueueSubscriber(asyncio.get_running_loop(), maxsize=1)
        subscriber(_update(latitude=1.0))
        subscriber(_update(latitude=2.0))
        # call_soon_threadsafe callbacks run on the next loop iteration
        await asyncio.sleep(0)
        return subscriber

    subscriber = asyncio.run(scenario())

    assert subscriber.queue.qsize() == 1
    assert subscriber.queue.get_nowait().latitude == 1.0
    assert subscriber.dropped == 1


def test_websocket_streams_updates_and_answers_ping(client):
    with client.websocket_connect("/gps/ws") as ws:
        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}

        resp = client.post("/gps", json={"latitude": 40.1, "longitude": -73.9, "animal_id": 7})
        assert resp.status_code == 200

        message = ws.receive_json()
        assert message["type"] == "location"
        assert message["data"]["animal_id"] == 7
        assert message["data"]["latitude"] == 40.1
