"""
Static tournament configuration (init_data.json)

Read-only from the clients' point of view: title, team names, the last
regular inning, dropdown choices for the operator panel, and an optional
board background color.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Dict, Any

from core.exceptions import InitDataError
from core.logging_config import get_logger
from security import InputSanitizer, InputValidationError, validate_hex_color
from .state import DEFAULT_LAST_INNING

logger = get_logger(__name__)


@dataclass
class InitData:
    """Tournament settings loaded from init_data.json"""
    game_title: str = ""
    team_top: str = ""
    team_bottom: str = ""
    last_inning: int = DEFAULT_LAST_INNING
    game_array: List[str] = field(default_factory=list)
    team_items: List[str] = field(default_factory=list)
    board_background_color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "<dict>") -> 'InitData':
        """Create InitData from the parsed JSON document"""
        if not isinstance(data, dict):
            raise InitDataError(source, "top level must be a JSON object")

        last_inning = data.get("last_inning", DEFAULT_LAST_INNING)
        if isinstance(last_inning, bool) or not isinstance(last_inning, int) or last_inning < 1:
            raise InitDataError(source, f"last_inning must be a positive integer, got {last_inning!r}")

        try:
            game_title = InputSanitizer.sanitize_text(data.get("game_title") or "", "title")
            team_top = InputSanitizer.sanitize_text(data.get("team_top") or "", "team")
            team_bottom = InputSanitizer.sanitize_text(data.get("team_bottom") or "", "team")
            game_array = [InputSanitizer.sanitize_text(v, "title") for v in _choice_list(data, "game_array", source)]
            team_items = [InputSanitizer.sanitize_text(v, "team") for v in _choice_list(data, "team_items", source)]
        except InputValidationError as e:
            raise InitDataError(source, str(e)) from e

        color = data.get("board_background_color")
        if color is not None:
            result = validate_hex_color(color)
            if result.valid:
                color = result.normalized_color
            else:
                logger.warning(f"Ignoring board_background_color {color!r} in {source}: {result.error}")
                color = None

        return cls(
            game_title=game_title,
            team_top=team_top,
            team_bottom=team_bottom,
            last_inning=last_inning,
            game_array=game_array,
            team_items=team_items,
            board_background_color=color,
        )


def _choice_list(data: Dict[str, Any], key: str, source: str) -> List[Any]:
    values = data.get(key) or []
    if not isinstance(values, list):
        raise InitDataError(source, f"{key} must be a list, got {type(values).__name__}")
    return values

def load_init_data(path) -> InitData:
    """
    Load and validate init data from disk.

    Args:
        path: Path to init_data.json

    Returns:
        InitData instance

    Raises:
        InitDataError: If the file is missing or not valid init data
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise InitDataError(str(path), "file not found")
    except json.JSONDecodeError as e:
        raise InitDataError(str(path), f"invalid JSON: {e}") from e

    init_data = InitData.from_dict(data, source=str(path))
    logger.info(f"Init data loaded from {path}: {init_data.game_title!r}")
    return init_data
