"""End-to-end tests of ScoreboardClient over the fake transport."""

from unittest.mock import Mock

import pytest

from core.connection_manager import ConnectionStatus
from sync.client import ScoreboardClient
from sync.credential_store import InMemoryCredentialStore
from sync.protocol import ClientType, Role

PAGE_URL = "http://localhost:8080/operation.html"


@pytest.fixture
def make_client(transport, timers):
    def factory(client_type=ClientType.OPERATION, **kwargs):
        return ScoreboardClient(
            client_type, PAGE_URL,
            ws_factory=transport, timer_factory=timers, **kwargs
        )
    return factory


def state_updates(ws):
    return [m for m in ws.sent_messages() if m["type"] == "game_state_update"]


class TestOperationClient:

    def test_master_handshake_token_and_broadcast(self, make_client, transport):
        store = InMemoryCredentialStore()
        client = make_client(store=store)
        client.start()
        ws = transport.latest
        ws.open()

        assert ws.url == "ws://localhost:8080/ws"
        assert ws.sent_messages() == [{"type": "handshake", "clientType": "operation"}]

        ws.receive({"type": "role_assignment", "role": "master", "clientId": "c1", "masterToken": "T1"})
        assert store.get() == "T1"
        assert client.roles.is_master

        assert client.perform("ball_up") is True
        updates = state_updates(ws)
        assert len(updates) == 1
        assert updates[0]["boardData"]["ball_cnt"] == 1

    def test_master_reconnects_with_token(self, make_client, transport, timers):
        client = make_client()
        client.start()
        transport.latest.open()
        transport.latest.receive({"type": "role_assignment", "role": "master", "clientId": "c1", "masterToken": "T1"})

        transport.latest.drop()
        assert timers.latest.delay == 1.0
        timers.latest.fire()
        transport.latest.drop()
        assert timers.latest.delay == 2.0
        timers.latest.fire()
        transport.latest.open()

        assert client.connection.status is ConnectionStatus.CONNECTED
        assert transport.latest.sent_messages()[0] == {
            "type": "handshake", "clientType": "operation", "masterToken": "T1"
        }

    def test_slave_operations_refused(self, make_client, transport):
        client = make_client()
        client.start()
        transport.latest.open()
        transport.latest.receive({"type": "role_assignment", "role": "slave", "clientId": "c2", "masterClientId": "c1"})

        assert client.perform("ball_up") is False
        assert client.model.state.balls == 0
        assert state_updates(transport.latest) == []

    def test_remote_state_applied_without_echo(self, make_client, transport):
        client = make_client()
        client.start()
        ws = transport.latest
        ws.open()
        ws.receive({"type": "role_assignment", "role": "master", "clientId": "c1"})
        client.perform("out_up")
        client.perform("out_up")

        ws.receive({"type": "game_state", "boardData": {"out_cnt": 0}})

        assert client.model.state.outs == 0
        assert len(state_updates(ws)) == 2

    def test_legacy_untyped_state_applied(self, make_client, transport):
        client = make_client()
        client.start()
        transport.latest.open()
        transport.latest.receive({"game_title": "Cup", "game_inning": 2})

        assert client.model.state.title == "Cup"
        assert client.model.state.inning == 2

    def test_unknown_messages_ignored(self, make_client, transport):
        client = make_client()
        client.start()
        transport.latest.open()
        before = client.model.state
        transport.latest.receive({"type": "chat", "text": "hello"})

        assert client.model.state == before
        assert client.roles.role is Role.UNASSIGNED

    def test_release_master(self, make_client, transport):
        store = InMemoryCredentialStore()
        client = make_client(store=store)
        client.start()
        ws = transport.latest
        ws.open()
        ws.receive({"type": "role_assignment", "role": "master", "clientId": "c1", "masterToken": "T1"})

        assert client.release_master() is True
        assert ws.sent_messages()[-1] == {"type": "release_master"}
        assert store.get() is None

        ws.receive({"type": "role_changed", "newRole": "slave", "reason": "released", "clearToken": True})
        assert client.roles.operations_disabled

    def test_init_data_labels_and_reload(self, make_client, transport, init_data):
        client = make_client(init_data=init_data)
        assert client.model.state.title == "Spring Tournament"

        client.start()
        transport.latest.open()
        transport.latest.receive({"type": "game_state", "boardData": {"game_title": "Restored"}})
        assert client.model.state.title == "Restored"

        client.reload_config(force=True)
        assert client.model.state.title == "Spring Tournament"

    def test_console_takes_last_inning_from_init_data(self, make_client, transport, init_data):
        client = make_client(init_data=init_data)
        assert client.model.state.last_inning == 7

        client.start()
        ws = transport.latest
        ws.open()
        ws.receive({"type": "role_assignment", "role": "master", "clientId": "c1"})
        assert client.perform("end_game") is True

        state = client.model.state
        assert (state.inning, state.last_inning) == (8, 7)
        assert state_updates(ws)[-1]["boardData"]["last_inning"] == 7

    def test_unknown_operation_refused(self, make_client):
        client = make_client()
        assert client.perform("fly_away") is False
        assert client.perform("_start_over") is False

    def test_status(self, make_client, transport):
        client = make_client()
        client.start()
        transport.latest.open()
        status = client.get_status()

        assert status["client_type"] == "operation"
        assert status["connection"]["status"] == "connected"
        assert status["role"]["role"] == "unassigned"
        assert status["status_text"] == "Pre-game"

    def test_shutdown(self, make_client, transport, timers):
        client = make_client()
        client.start()
        transport.latest.drop()
        client.shutdown()

        assert client.connection.status is ConnectionStatus.DISCONNECTED
        assert timers.pending == []


class TestBoardClient:

    def test_board_renders_remote_state(self, make_client, transport, init_data):
        on_render = Mock()
        client = make_client(ClientType.BOARD, init_data=init_data, on_render=on_render)
        client.start()
        ws = transport.latest
        ws.open()

        assert ws.sent_messages() == [{"type": "handshake", "clientType": "board"}]
        assert client.board.background_color == "#00ff00"

        ws.receive({"type": "role_assignment", "role": "viewer", "clientId": "b1"})
        ws.receive({"type": "game_state", "boardData": {
            "game_title": "Cup", "team_top": "A", "team_bottom": "B",
            "game_inning": 3, "top": True, "score_top": 2, "first_base": True,
        }})

        line = on_render.call_args[0][0]
        assert "Cup" in line
        assert "Top 3rd" in line
        assert "A 2 - 0 B" in line
        assert "bases 1--" in line
        assert state_updates(ws) == []

    def test_board_has_no_operations(self, make_client):
        client = make_client(ClientType.BOARD)
        assert client.controls is None
        assert client.perform("ball_up") is False

    def test_board_uses_default_color_without_init_data(self, make_client):
        client = make_client(ClientType.BOARD)
        assert client.board.background_color == "#ff55ff"
