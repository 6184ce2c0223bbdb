"""
Display board side of the scoreboard.

Rendering itself belongs to the host page; this keeps the values the board
shows (validated background color, one-line summary) and reports changes.
"""

from typing import Optional, Callable

from core.logging_config import get_logger
from security import validate_hex_color, DEFAULT_BACKGROUND_COLOR
from .state import GameState

logger = get_logger(__name__)


def render_line(state: GameState) -> str:
    """One-line textual rendering of the board"""
    bases = "".join(
        mark if occupied else "-"
        for mark, occupied in (("1", state.first_base), ("2", state.second_base), ("3", state.third_base))
    )
    return (
        f"{state.title} | {state.team_top} {state.score_top} - {state.score_bottom} {state.team_bottom} | "
        f"{state.status_text()} | B{state.balls} S{state.strikes} O{state.outs} | bases {bases}"
    )


class BoardDisplay:
    """Holds what the display board shows"""

    def __init__(self,
                 default_color: str = DEFAULT_BACKGROUND_COLOR,
                 on_render: Optional[Callable[[str], None]] = None):
        """
        Args:
            default_color: Fallback used whenever a color is rejected
            on_render: Receives the rendered line on every state change
        """
        self.default_color = default_color
        self.background_color = default_color
        self.on_render = on_render
        self.last_line: Optional[str] = None

    def set_background_color(self, color) -> bool:
        """
        Apply a background color after validation.

        Returns:
            True if the color was accepted, False if the default was used
        """
        result = validate_hex_color(color)
        if result.valid:
            self.background_color = result.normalized_color
            logger.info(f"Board background color set to {self.background_color}")
            return True

        logger.warning(
            f"Invalid background color received: {color!r}. "
            f"Error: {result.error}. Using default color."
        )
        self.background_color = self.default_color
        return False

    def on_state_changed(self, state: GameState) -> None:
        """Model listener"""
        self.last_line = render_line(state)
        logger.debug(f"Board updated: {self.last_line}")
        if self.on_render:
            self.on_render(self.last_line)
