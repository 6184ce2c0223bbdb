"""Shared fixtures: in-process fakes for the relay transport and reconnect timers."""

import json

import pytest
import websocket

from scoreboard.init_data import InitData


class FakeWebSocketApp:
    """Stands in for websocket.WebSocketApp; tests drive the callbacks by hand."""

    def __init__(self, url, on_open=None, on_message=None, on_error=None, on_close=None):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.on_close = on_close
        self.sent = []
        self.closed = False

    def run_forever(self):
        return None

    def send(self, data):
        if self.closed:
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.sent.append(data)

    def close(self):
        self.closed = True

    # Test helpers

    def open(self):
        self.on_open(self)

    def receive(self, payload):
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        self.on_message(self, payload)

    def fail(self, error="connection reset"):
        self.on_error(self, error)

    def drop(self, code=1006, reason=""):
        self.on_close(self, code, reason)

    def sent_messages(self):
        return [json.loads(data) for data in self.sent]


class FakeTransportFactory:
    """Records every connection object the manager creates."""

    def __init__(self):
        self.instances = []
        self.fail_next = 0

    def __call__(self, url, **callbacks):
        if self.fail_next:
            self.fail_next -= 1
            raise OSError("cannot create socket")
        ws = FakeWebSocketApp(url, **callbacks)
        self.instances.append(ws)
        return ws

    @property
    def latest(self):
        return self.instances[-1]


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.callback()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        """Timers armed and neither cancelled nor fired"""
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    @property
    def latest(self):
        return self.timers[-1]


@pytest.fixture
def transport():
    return FakeTransportFactory()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def init_data():
    return InitData(
        game_title="Spring Tournament",
        team_top="Eagles",
        team_bottom="Hawks",
        last_inning=7,
        game_array=["Spring Tournament", "Final"],
        team_items=["Eagles", "Hawks", "Owls"],
        board_background_color="#00ff00",
    )
