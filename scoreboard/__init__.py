"""
Scoreboard state, baseball rules and the operator/board surfaces
"""

from .state import GameState, GamePhase
from .model import GameStateModel
from .controls import OperatorControls
from .init_data import InitData, load_init_data
from .board import BoardDisplay, render_line

__all__ = [
    "GameState",
    "GamePhase",
    "GameStateModel",
    "OperatorControls",
    "InitData",
    "load_init_data",
    "BoardDisplay",
    "render_line",
]
