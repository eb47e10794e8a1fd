"""Tests for the event bus and event ids."""

import pytest

from plant_autonomy.detection.bus import EventBus, EventIdGenerator


class TestHistory:
    def test_keeps_most_recent_events_in_order(self, make_event):
        bus = EventBus(capacity=100)

        for index in range(150):
            bus.publish(make_event(index))

        history = bus.get_history()
        assert len(history) == 100
        assert [e.id for e in history] == [f"evt-{i}" for i in range(50, 150)]

    def test_history_is_a_copy(self, make_event):
        bus = EventBus()
        bus.publish(make_event(1))

        bus.get_history().clear()

        assert len(bus.get_history()) == 1

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            EventBus(capacity=0)


class TestListeners:
    def test_listeners_called_in_registration_order(self, make_event):
        bus = EventBus()
        calls = []
        bus.subscribe(lambda e: calls.append(("first", e.id)))
        bus.subscribe(lambda e: calls.append(("second", e.id)))

        bus.publish(make_event(7))

        assert calls == [("first", "evt-7"), ("second", "evt-7")]

    def test_failing_listener_does_not_block_others(self, make_event):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener crashed")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        delivered = bus.publish(make_event(1))

        assert delivered == 1
        assert [e.id for e in received] == ["evt-1"]
        assert len(bus.get_history()) == 1

    def test_unsubscribe_stops_delivery(self, make_event):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)

        bus.publish(make_event(1))
        unsubscribe()
        unsubscribe()
        bus.publish(make_event(2))

        assert [e.id for e in received] == ["evt-1"]
        assert bus.listener_count == 0

    def test_listener_may_unsubscribe_during_delivery(self, make_event):
        bus = EventBus()
        received = []
        unsubscribe = None

        def once(event):
            received.append(event.id)
            unsubscribe()

        unsubscribe = bus.subscribe(once)
        bus.subscribe(lambda e: received.append("after"))

        bus.publish(make_event(1))
        bus.publish(make_event(2))

        assert received == ["evt-1", "after", "after"]

    def test_clear_listeners(self, make_event):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)

        bus.clear_listeners()
        bus.publish(make_event(1))

        assert received == []


class TestEventIdGenerator:
    def test_ids_are_unique_within_a_millisecond(self, clock):
        ids = EventIdGenerator(clock)

        generated = [ids.next_id() for _ in range(5)]

        assert len(set(generated)) == 5

    def test_id_format(self, clock):
        millis = int(clock.now().timestamp() * 1000)

        assert EventIdGenerator(clock).next_id() == f"evt-{millis}-000001"
