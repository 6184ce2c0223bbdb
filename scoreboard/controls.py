"""
Operator surface for the control panel.

Every mutation the operator can trigger goes through one gate: while the
relay has made this client a slave, operations are refused.
"""

from functools import wraps
from typing import Callable

from core.logging_config import get_logger
from .model import GameStateModel

logger = get_logger(__name__)


def gated(method):
    """Refuse the operation when operations are disabled; returns True if it ran"""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.operations_disabled:
            logger.debug(f"Refused {method.__name__}: operations disabled for this client")
            return False
        method(self, *args, **kwargs)
        return True
    return wrapper


class OperatorControls:
    """Gated facade over GameStateModel for the operation console"""

    def __init__(self, model: GameStateModel, is_disabled: Callable[[], bool]):
        """
        Args:
            model: The live game state model
            is_disabled: Predicate from the role coordinator
        """
        self.model = model
        self._is_disabled = is_disabled

    @property
    def operations_disabled(self) -> bool:
        return self._is_disabled()

    def needs_new_game_confirmation(self) -> bool:
        """Starting over mid-game should be confirmed by the operator first"""
        return self.model.is_playing()

    @gated
    def ball_up(self):
        self.model.ball_up()

    @gated
    def ball_down(self):
        self.model.ball_down()

    @gated
    def strike_up(self):
        self.model.strike_up()

    @gated
    def strike_down(self):
        self.model.strike_down()

    @gated
    def out_up(self):
        self.model.out_up()

    @gated
    def out_down(self):
        self.model.out_down()

    @gated
    def score_top_up(self):
        self.model.score_top_up()

    @gated
    def score_top_down(self):
        self.model.score_top_down()

    @gated
    def score_bottom_up(self):
        self.model.score_bottom_up()

    @gated
    def score_bottom_down(self):
        self.model.score_bottom_down()

    @gated
    def toggle_base(self, base: str):
        self.model.toggle_base(base)

    @gated
    def set_base(self, base: str, occupied: bool):
        self.model.set_base(base, occupied)

    @gated
    def reset_count(self):
        self.model.reset_count()

    @gated
    def reset_bases_and_counts(self):
        self.model.reset_bases_and_counts()

    @gated
    def change_offense(self):
        self.model.change_offense()

    @gated
    def advance_half_inning(self):
        self.model.advance_half_inning()

    @gated
    def retreat_half_inning(self):
        self.model.retreat_half_inning()

    @gated
    def advance_inning(self):
        self.model.advance_inning()

    @gated
    def retreat_inning(self):
        self.model.retreat_inning()

    @gated
    def new_game(self):
        self.model.new_game()

    @gated
    def end_game(self):
        self.model.end_game()

    @gated
    def load_from_init_data(self, init_data):
        self.model.load_from_init_data(init_data)

    @gated
    def set_title(self, title: str):
        self.model.set_title(title)

    @gated
    def set_teams(self, team_top=None, team_bottom=None):
        self.model.set_teams(team_top, team_bottom)
