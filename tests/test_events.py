"""
Tests for the in-process event bus.
"""

from flow_engine.services.events import EventBus, get_event_bus


def test_publish_to_subscribers():
    bus = EventBus()
    seen = []
    bus.subscribe("ping", lambda payload: seen.append(payload["n"]))
    bus.subscribe("ping", lambda payload: payload["n"] * 10)

    results = bus.publish("ping", {"n": 2})

    assert seen == [2]
    assert results == [None, 20]
    assert bus.subscriber_count("ping") == 2


def test_subscriber_errors_are_isolated():
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("nope")

    bus.subscribe("ping", broken)
    bus.subscribe("ping", lambda payload: seen.append(True))
    bus.publish("ping")
    assert seen == [True]


def test_unsubscribe_and_global_bus():
    bus = EventBus()

    def handler(payload):
        return payload

    bus.subscribe("e", handler)
    bus.unsubscribe("e", handler)
    bus.unsubscribe("e", handler)
    assert bus.publish("e", {}) == []
    assert get_event_bus() is get_event_bus()
