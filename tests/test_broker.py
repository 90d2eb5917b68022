from smart_spotlight.common.models import PromptEvent
from smart_spotlight.host.broker import EventBroker


def test_every_subscriber_receives_events():
    broker = EventBroker()
    a, b = broker.subscribe(), broker.subscribe()
    event = PromptEvent(type="final_result", data="x", request_id="r1")
    assert broker.publish(event) == 2
    assert a.get_nowait() == event
    assert b.get_nowait() == event


def test_unsubscribed_queue_gets_nothing():
    broker = EventBroker()
    sub = broker.subscribe()
    broker.unsubscribe(sub)
    broker.publish(PromptEvent(type="error", data="x"))
    assert sub.empty()
    assert broker.subscriber_count == 0


def test_full_queue_drops_for_that_subscriber_only():
    broker = EventBroker(maxsize=1)
    slow, fast = broker.subscribe(), broker.subscribe()
    broker.publish(PromptEvent(type="tool_use"))
    fast.get_nowait()
    assert broker.publish(PromptEvent(type="final_result")) == 1
    assert fast.get_nowait().type == "final_result"
    assert slow.qsize() == 1
