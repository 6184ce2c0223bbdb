"""
Scoreboard value types.

GameState is the single live scoreboard value of a client. Its wire form
uses the field names the relay and every other client already speak.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Any

from config import GAME_CONFIG

MAX_BALLS = GAME_CONFIG["max_balls"]
MAX_STRIKES = GAME_CONFIG["max_strikes"]
MAX_OUTS = GAME_CONFIG["max_outs"]
DEFAULT_LAST_INNING = GAME_CONFIG["default_last_inning"]

# attribute name -> wire name
WIRE_NAMES = {
    "title": "game_title",
    "team_top": "team_top",
    "team_bottom": "team_bottom",
    "inning": "game_inning",
    "last_inning": "last_inning",
    "top": "top",
    "first_base": "first_base",
    "second_base": "second_base",
    "third_base": "third_base",
    "balls": "ball_cnt",
    "strikes": "strike_cnt",
    "outs": "out_cnt",
    "score_top": "score_top",
    "score_bottom": "score_bottom",
}

ATTRIBUTE_NAMES = {wire: attr for attr, wire in WIRE_NAMES.items()}

BASES = ("first_base", "second_base", "third_base")


class GamePhase(Enum):
    """Display phase derived from the inning number"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass
class GameState:
    """Current game state."""
    title: str = ""
    team_top: str = ""
    team_bottom: str = ""
    inning: int = 0
    last_inning: int = DEFAULT_LAST_INNING
    top: bool = True
    first_base: bool = False
    second_base: bool = False
    third_base: bool = False
    balls: int = 0
    strikes: int = 0
    outs: int = 0
    score_top: int = 0
    score_bottom: int = 0

    def to_wire(self) -> Dict[str, Any]:
        """Full snapshot keyed by wire names."""
        return {WIRE_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}

    def copy(self) -> "GameState":
        return GameState(**{f.name: getattr(self, f.name) for f in fields(self)})

    @property
    def phase(self) -> GamePhase:
        if self.inning < 1:
            return GamePhase.NOT_STARTED
        if self.inning > self.last_inning:
            return GamePhase.FINISHED
        return GamePhase.IN_PROGRESS

    def status_text(self) -> str:
        """Display-friendly inning status."""
        phase = self.phase
        if phase is GamePhase.NOT_STARTED:
            return "Pre-game"
        if phase is GamePhase.FINISHED:
            return "Final"
        return f"{'Top' if self.top else 'Bottom'} {ordinal(self.inning)}"


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"
