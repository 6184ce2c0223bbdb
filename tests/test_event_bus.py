"""Tests for the system event bus."""

import threading

from events.event_bus import EventBus, EventTypes


class TestEventBus:

    def setup_method(self):
        self.bus = EventBus()

    def teardown_method(self):
        self.bus.shutdown()

    def test_listener_receives_event(self):
        received = []
        done = threading.Event()

        def listener(event):
            received.append(event)
            done.set()

        self.bus.on(EventTypes.ROLE_ASSIGNED, listener)
        self.bus.emit(EventTypes.ROLE_ASSIGNED, {"role": "master"}, source="test")

        assert done.wait(timeout=2.0)
        assert received[0].data == {"role": "master"}
        assert received[0].source == "test"

    def test_wildcard_listener_and_history(self):
        done = threading.Event()
        self.bus.on_all(lambda event: done.set())
        self.bus.emit(EventTypes.CONNECTION_OPEN, {"url": "ws://x/ws"})

        assert done.wait(timeout=2.0)
        recent = self.bus.get_recent_events(event_type=EventTypes.CONNECTION_OPEN)
        assert recent[-1]["data"] == {"url": "ws://x/ws"}
        assert self.bus.get_stats()["event_counts"][EventTypes.CONNECTION_OPEN] == 1

    def test_failing_listener_does_not_stop_processing(self):
        done = threading.Event()

        def failing(event):
            raise RuntimeError("boom")

        self.bus.on(EventTypes.CONNECTION_LOST, failing)
        self.bus.on(EventTypes.CONNECTION_LOST, lambda event: done.set())
        self.bus.emit(EventTypes.CONNECTION_LOST, {"attempts": 10})

        assert done.wait(timeout=2.0)

    def test_off_removes_listener(self):
        calls = []
        done = threading.Event()

        def listener(event):
            calls.append(event)

        self.bus.on(EventTypes.STATE_BROADCAST, listener)
        self.bus.off(EventTypes.STATE_BROADCAST, listener)
        self.bus.on_all(lambda event: done.set())
        self.bus.emit(EventTypes.STATE_BROADCAST, {})

        assert done.wait(timeout=2.0)
        assert calls == []
