from smart_spotlight.core.events import EventBus


def test_publish_reaches_subscribers_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe("PromptEvent", lambda p: seen.append(("a", p)))
    bus.subscribe("PromptEvent", lambda p: seen.append(("b", p)))
    assert bus.publish("PromptEvent", 1) == 2
    assert seen == [("a", 1), ("b", 1)]


def test_channels_are_isolated():
    bus = EventBus()
    seen = []
    bus.subscribe("one", seen.append)
    bus.publish("two", "x")
    assert seen == []


def test_release_is_idempotent():
    bus = EventBus()
    seen = []
    sub = bus.subscribe("c", seen.append)
    sub.release()
    sub.release()
    assert not sub.active
    assert bus.subscriber_count("c") == 0
    bus.publish("c", 1)
    assert seen == []


def test_subscription_as_context_manager():
    bus = EventBus()
    with bus.subscribe("c", lambda p: None):
        assert bus.subscriber_count("c") == 1
    assert bus.subscriber_count("c") == 0


def test_failing_handler_does_not_stop_delivery():
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe("c", broken)
    bus.subscribe("c", seen.append)
    assert bus.publish("c", 5) == 1
    assert seen == [5]
