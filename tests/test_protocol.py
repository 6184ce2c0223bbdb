"""Tests for the relay wire protocol."""

import json

import pytest

from core.exceptions import ProtocolError
from sync.protocol import (
    ClientType, GameStateMessage, GameStateUpdate, Handshake, ReleaseMaster,
    Role, RoleAssignment, RoleChanged, UnknownMessage, encode_message, parse_message,
)


class TestParseMessage:
    """Tests for inbound decoding."""

    def test_role_assignment(self):
        message = parse_message(json.dumps({
            "type": "role_assignment", "role": "master", "clientId": "c1",
            "masterClientId": "c1", "masterToken": "T1",
        }))
        assert isinstance(message, RoleAssignment)
        assert message.role is Role.MASTER
        assert message.client_id == "c1"
        assert message.master_token == "T1"

    def test_role_is_case_insensitive(self):
        message = parse_message({"type": "role_assignment", "role": "Slave", "clientId": 2})
        assert message.role is Role.SLAVE

    def test_role_changed(self):
        message = parse_message({
            "type": "role_changed", "newRole": "slave", "reason": "released", "clearToken": True,
        })
        assert isinstance(message, RoleChanged)
        assert message.new_role is Role.SLAVE
        assert message.reason == "released"
        assert message.clear_token is True
        assert message.master_token is None

    def test_clear_token_must_be_true_literal(self):
        message = parse_message({"type": "role_changed", "newRole": "slave", "clearToken": "yes"})
        assert message.clear_token is False

    @pytest.mark.parametrize("envelope", [
        {"type": "game_state", "boardData": {"ball_cnt": 1}},
        {"type": "game_state", "data": {"ball_cnt": 1}},
        {"type": "game_state", "ball_cnt": 1},
    ])
    def test_game_state_payload_forms(self, envelope):
        message = parse_message(envelope)
        assert isinstance(message, GameStateMessage)
        assert message.payload == {"ball_cnt": 1}
        assert not message.legacy

    def test_untyped_envelope_is_legacy_state(self):
        message = parse_message('{"out_cnt": 0}')
        assert isinstance(message, GameStateMessage)
        assert message.legacy
        assert message.payload == {"out_cnt": 0}

    def test_unknown_type(self):
        message = parse_message({"type": "chat", "text": "hi"})
        assert isinstance(message, UnknownMessage)
        assert message.type == "chat"

    @pytest.mark.parametrize("raw", [
        "{not json",
        "[]",
        '"text"',
        {"type": "role_assignment"},
        {"type": "role_assignment", "role": "captain"},
        {"type": "role_changed", "newRole": 3},
        {"type": "game_state", "boardData": [1, 2]},
        {"type": "role_assignment", "role": "master", "masterToken": 7},
    ])
    def test_malformed_envelopes_raise(self, raw):
        with pytest.raises(ProtocolError):
            parse_message(raw)

    def test_accepts_bytes(self):
        assert isinstance(parse_message(b'{"type": "game_state", "boardData": {}}'), GameStateMessage)


class TestEncodeMessage:
    """Tests for outbound encoding."""

    def test_handshake(self):
        assert json.loads(encode_message(Handshake(ClientType.OPERATION, "T1"))) == {
            "type": "handshake", "clientType": "operation", "masterToken": "T1"
        }

    def test_handshake_without_token(self):
        assert json.loads(encode_message(Handshake(ClientType.BOARD))) == {
            "type": "handshake", "clientType": "board"
        }

    def test_game_state_update(self):
        assert json.loads(encode_message(GameStateUpdate({"game_title": "Cup"}))) == {
            "type": "game_state_update", "boardData": {"game_title": "Cup"}
        }

    def test_release_master(self):
        assert json.loads(encode_message(ReleaseMaster())) == {"type": "release_master"}

    def test_non_ascii_kept_readable(self):
        assert "甲子園" in encode_message(GameStateUpdate({"game_title": "甲子園"}))
