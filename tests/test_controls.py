"""Tests for OperatorControls gating."""

from unittest.mock import Mock, patch

from scoreboard.controls import OperatorControls
from scoreboard.model import GameStateModel
from scoreboard.state import GameState


class TestOperatorControls:
    """Tests for the operations_disabled gate."""

    def test_operations_run_when_enabled(self):
        model = GameStateModel()
        controls = OperatorControls(model, lambda: False)

        assert controls.ball_up() is True
        assert controls.toggle_base("first_base") is True
        assert model.state.balls == 1
        assert model.state.first_base

    def test_operations_refused_when_disabled(self):
        model = GameStateModel()
        listener = Mock()
        model.add_listener(listener)
        controls = OperatorControls(model, lambda: True)

        assert controls.ball_up() is False
        assert controls.score_top_up() is False
        assert controls.new_game() is False
        assert controls.set_title("Hijacked") is False
        assert model.state == GameState()
        listener.assert_not_called()

    def test_gate_is_read_on_every_call(self):
        disabled = {"value": True}
        model = GameStateModel()
        controls = OperatorControls(model, lambda: disabled["value"])

        assert controls.out_up() is False
        disabled["value"] = False
        assert controls.out_up() is True
        assert model.state.outs == 1

    def test_operations_disabled_property(self):
        assert OperatorControls(GameStateModel(), lambda: True).operations_disabled
        assert not OperatorControls(GameStateModel(), lambda: False).operations_disabled

    def test_new_game_confirmation_only_mid_game(self):
        assert not OperatorControls(GameStateModel(GameState(inning=0)), lambda: False).needs_new_game_confirmation()
        assert OperatorControls(GameStateModel(GameState(inning=3)), lambda: False).needs_new_game_confirmation()
        assert not OperatorControls(GameStateModel(GameState(inning=10)), lambda: False).needs_new_game_confirmation()

    def test_set_teams_and_title(self):
        model = GameStateModel()
        controls = OperatorControls(model, lambda: False)
        controls.set_title("Cup Final")
        controls.set_teams("Eagles", None)

        assert model.state.title == "Cup Final"
        assert model.state.team_top == "Eagles"
        assert model.state.team_bottom == ""

    def test_refusal_is_logged(self):
        controls = OperatorControls(GameStateModel(), lambda: True)
        with patch("scoreboard.controls.logger") as mock_logger:
            controls.strike_up()
            mock_logger.debug.assert_called_once()
