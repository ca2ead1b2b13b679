import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.services.realtime import ChangeEvent, ChangeEventType, ORDERS_TABLE
from storefront.services.realtime.redis_feed import RedisChangeFeed


class FakePubSub:
    """Yields the given payloads as pub/sub messages, then optionally fails."""

    def __init__(self, payloads, error=None):
        self.payloads = payloads
        self.error = error
        self.closed = False

    async def listen(self):
        yield {"type": "subscribe", "data": 1}
        for payload in self.payloads:
            yield {"type": "message", "data": payload}
        if self.error is not None:
            raise self.error

    async def unsubscribe(self):
        pass

    async def aclose(self):
        self.closed = True


def make_feed() -> RedisChangeFeed:
    return RedisChangeFeed(redis_url="redis://localhost:6379/15", channel_prefix="test")


def test_malformed_payloads_do_not_stop_the_listener():
    feed = make_feed()
    event = ChangeEvent(table=ORDERS_TABLE, event_type=ChangeEventType.INSERT, record_id="order-1")
    received = []

    async def on_change(e):
        received.append(e)

    pubsub = FakePubSub(["123", "[1, 2]", "not json", '{"table": "orders"}', event.to_json()])
    asyncio.run(feed._listen(pubsub, on_change, ORDERS_TABLE))

    assert received == [event]


def test_callback_errors_do_not_stop_the_listener():
    feed = make_feed()
    event = ChangeEvent(table=ORDERS_TABLE, event_type=ChangeEventType.UPDATE, record_id="order-1")
    calls = []

    async def on_change(e):
        calls.append(e)
        if len(calls) == 1:
            raise RuntimeError("boom")

    asyncio.run(feed._listen(FakePubSub([event.to_json(), event.to_json()]), on_change, ORDERS_TABLE))

    assert len(calls) == 2


def test_connection_loss_ends_listener_quietly():
    feed = make_feed()
    event = ChangeEvent(table=ORDERS_TABLE, event_type=ChangeEventType.INSERT)
    received = []

    async def on_change(e):
        received.append(e)

    pubsub = FakePubSub([event.to_json()], error=RedisConnectionError("connection lost"))
    asyncio.run(feed._listen(pubsub, on_change, ORDERS_TABLE))

    assert received == [event]


def test_unsubscribe_tolerates_a_failed_listener():
    feed = make_feed()
    pubsub = FakePubSub([])

    async def broken_listener():
        raise RuntimeError("listener crashed")

    async def scenario():
        task = asyncio.create_task(broken_listener())
        await asyncio.sleep(0)
        feed._listeners["sub-1"] = (pubsub, task)
        await feed.close()

    asyncio.run(scenario())

    assert pubsub.closed
    assert feed._listeners == {}


def test_channel_names():
    assert make_feed().channel_for(ORDERS_TABLE) == "test:orders"
