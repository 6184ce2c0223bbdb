"""
Scoreboard state model

Holds the live GameState and every baseball transition the operator can
trigger. Each operation finishes with an explicit post-mutation hook that
notifies listeners synchronously when the state actually changed.
"""

from functools import wraps
from typing import Callable, Dict, Any, List, Optional

from core.logging_config import get_logger
from .state import (
    GameState, GamePhase, BASES,
    MAX_BALLS, MAX_STRIKES, MAX_OUTS,
)

logger = get_logger(__name__)

StateListener = Callable[[GameState], None]


def mutation(method):
    """Run a model operation, then fire the post-mutation hook if anything changed"""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        before = self._state.copy()
        result = method(self, *args, **kwargs)
        self._enforce_domains()
        if self._state != before:
            self._notify_listeners()
        return result
    return wrapper


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class GameStateModel:
    """Authoritative scoreboard value plus transition operations"""

    def __init__(self, state: Optional[GameState] = None):
        self._state = state.copy() if state else GameState()
        self._listeners: List[StateListener] = []
        self._remote_applied = False
        self._enforce_domains()

    @property
    def state(self) -> GameState:
        """Copy of the current state; mutate through the operations only"""
        return self._state.copy()

    def snapshot(self) -> Dict[str, Any]:
        return self._state.to_wire()

    # Listeners

    def add_listener(self, callback: StateListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self) -> None:
        snapshot = self._state.copy()
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Error in state listener: {e}", exc_info=True)

    # Ball / strike / out

    @mutation
    def ball_up(self):
        if self._state.balls < MAX_BALLS:
            self._state.balls += 1

    @mutation
    def ball_down(self):
        if self._state.balls > 0:
            self._state.balls -= 1

    @mutation
    def strike_up(self):
        if self._state.strikes < MAX_STRIKES:
            self._state.strikes += 1

    @mutation
    def strike_down(self):
        if self._state.strikes > 0:
            self._state.strikes -= 1

    @mutation
    def out_up(self):
        if self._state.outs < MAX_OUTS:
            self._state.outs += 1

    @mutation
    def out_down(self):
        if self._state.outs > 0:
            self._state.outs -= 1

    # Scores

    @mutation
    def score_top_up(self):
        self._state.score_top += 1

    @mutation
    def score_top_down(self):
        if self._state.score_top > 0:
            self._state.score_top -= 1

    @mutation
    def score_bottom_up(self):
        self._state.score_bottom += 1

    @mutation
    def score_bottom_down(self):
        if self._state.score_bottom > 0:
            self._state.score_bottom -= 1

    # Bases

    @mutation
    def set_base(self, base: str, occupied: bool):
        if base not in BASES:
            logger.debug(f"Ignoring unknown base: {base}")
            return
        setattr(self._state, base, bool(occupied))

    @mutation
    def toggle_base(self, base: str):
        if base not in BASES:
            logger.debug(f"Ignoring unknown base: {base}")
            return
        setattr(self._state, base, not getattr(self._state, base))

    # Resets

    @mutation
    def reset_count(self):
        self._reset_count()

    @mutation
    def reset_bases_and_counts(self):
        self._reset_bases_and_counts()

    def _reset_count(self):
        self._state.balls = 0
        self._state.strikes = 0
        self._state.outs = 0

    def _reset_bases_and_counts(self):
        self._reset_count()
        for base in BASES:
            setattr(self._state, base, False)

    # Innings

    @mutation
    def change_offense(self):
        self._state.top = not self._state.top
        self._reset_bases_and_counts()

    @mutation
    def advance_half_inning(self):
        """Forward one half inning; inert once the game is finished"""
        state = self._state
        if state.inning > state.last_inning:
            return
        if state.top:
            state.top = False
        else:
            state.inning += 1
            state.top = True
        self._reset_bases_and_counts()

    @mutation
    def retreat_half_inning(self):
        """Back one half inning; landing on inning 0 also clears both scores"""
        state = self._state
        if state.inning < 1:
            return
        if state.top:
            state.inning -= 1
            state.top = False
        else:
            state.top = True
        self._reset_bases_and_counts()
        if state.inning == 0:
            state.score_top = 0
            state.score_bottom = 0

    @mutation
    def advance_inning(self):
        if self._state.inning < self._state.last_inning + 1:
            self._state.inning += 1
            self._reset_bases_and_counts()

    @mutation
    def retreat_inning(self):
        if self._state.inning > 0:
            self._state.inning -= 1
            self._reset_bases_and_counts()

    # Game lifecycle

    @mutation
    def new_game(self):
        """Back to pre-game. Confirming with the operator is the caller's job."""
        self._start_over()

    @mutation
    def end_game(self):
        self._state.inning = self._state.last_inning + 1
        self._reset_bases_and_counts()

    @mutation
    def load_from_init_data(self, init_data):
        """Start a new tournament: take title, teams and last inning from init data, reset the game"""
        self._state.title = init_data.game_title
        self._state.team_top = init_data.team_top
        self._state.team_bottom = init_data.team_bottom
        self._state.last_inning = init_data.last_inning
        self._start_over()

    def _start_over(self):
        self._state.inning = 0
        self._state.top = True
        self._state.score_top = 0
        self._state.score_bottom = 0
        self._reset_bases_and_counts()

    # Labels

    @mutation
    def set_title(self, title: str):
        self._state.title = title

    @mutation
    def set_teams(self, team_top: Optional[str] = None, team_bottom: Optional[str] = None):
        if team_top is not None:
            self._state.team_top = team_top
        if team_bottom is not None:
            self._state.team_bottom = team_bottom

    @mutation
    def apply_config(self, init_data, force: bool = False):
        """
        Apply init data labels without touching the game in progress.

        Labels are only filled while still empty unless force is set, and
        last_inning only until a relay snapshot has been merged, so state
        restored from the relay wins over the static file.
        """
        state = self._state
        if force or not state.title:
            state.title = init_data.game_title
        if force or not state.team_top:
            state.team_top = init_data.team_top
        if force or not state.team_bottom:
            state.team_bottom = init_data.team_bottom
        if force or not self._remote_applied:
            state.last_inning = init_data.last_inning

    # Remote merge

    @mutation
    def apply_remote(self, values: Dict[str, Any]):
        """
        Overwrite exactly the given attributes (presence merge).

        Values are expected to be type-checked already; domains are clamped
        by the post-mutation hook. last_inning goes first so the inning clamp
        sees the incoming boundary.
        """
        if "last_inning" in values:
            self._state.last_inning = values["last_inning"]
        for name, value in values.items():
            if name == "last_inning":
                continue
            setattr(self._state, name, value)
        self._remote_applied = True

    # Projection

    def phase(self) -> GamePhase:
        return self._state.phase

    def status_text(self) -> str:
        return self._state.status_text()

    def is_playing(self) -> bool:
        return self._state.phase is GamePhase.IN_PROGRESS

    def _enforce_domains(self):
        state = self._state
        state.last_inning = max(1, state.last_inning)
        state.inning = _clamp(state.inning, 0, state.last_inning + 1)
        state.balls = _clamp(state.balls, 0, MAX_BALLS)
        state.strikes = _clamp(state.strikes, 0, MAX_STRIKES)
        state.outs = _clamp(state.outs, 0, MAX_OUTS)
        state.score_top = max(0, state.score_top)
        state.score_bottom = max(0, state.score_bottom)
