"""
Inbound side of state sync: merge relay snapshots into the local model
"""

from typing import Any, Dict

from core.exceptions import ProtocolError
from core.logging_config import get_logger
from events import event_bus, EventTypes
from scoreboard.model import GameStateModel
from scoreboard.state import ATTRIBUTE_NAMES, GameState
from .protocol import GameStateMessage

logger = get_logger(__name__)

# wire name -> expected python type
FIELD_TYPES = {
    wire: type(getattr(GameState(), attr))
    for wire, attr in ATTRIBUTE_NAMES.items()
}


def coerce_field(name: str, value: Any) -> Any:
    """
    Check one wire value against its field type.

    Integral floats are accepted for int fields (JSON producers sometimes
    send 2.0). Booleans are never accepted as numbers.

    Raises:
        ProtocolError: If the value cannot stand for the field
    """
    expected = FIELD_TYPES[name]
    if expected is bool:
        if isinstance(value, bool):
            return value
    elif expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif expected is str:
        if isinstance(value, str):
            return value
    raise ProtocolError(f"Field {name} expects {expected.__name__}, got {type(value).__name__}", value)


def extract_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Pick the known fields present in a payload, keyed by model attribute.

    Presence decides, not truthiness: 0 and False overwrite. Explicit nulls
    count as absent. One bad field rejects the whole payload.
    """
    values = {}
    for wire_name, attr in ATTRIBUTE_NAMES.items():
        if wire_name not in payload:
            continue
        value = payload[wire_name]
        if value is None:
            logger.debug(f"Skipping null field {wire_name}")
            continue
        values[attr] = coerce_field(wire_name, value)
    return values


class StateReceiver:
    """Applies game_state messages to the model without echoing them back"""

    def __init__(self, model: GameStateModel, broadcaster):
        self.model = model
        self.broadcaster = broadcaster
        self.updates_applied = 0
        self.updates_rejected = 0

    def handle(self, message: GameStateMessage) -> bool:
        """
        Merge a state message into the model.

        Returns:
            True if the payload was accepted (even when nothing changed)
        """
        try:
            values = extract_fields(message.payload)
        except ProtocolError as e:
            self.updates_rejected += 1
            logger.warning(f"Rejected game state: {e}", extra={"extra_data": {"payload": message.payload}})
            event_bus.emit(EventTypes.MESSAGE_REJECTED, {"error": str(e)}, source="StateReceiver")
            return False

        if not values:
            logger.debug("Game state carried no known fields")
            return True

        with self.broadcaster.suppress_echo():
            self.model.apply_remote(values)

        self.updates_applied += 1
        event_bus.emit(EventTypes.STATE_RECEIVED, {
            "fields": sorted(values),
            "legacy": message.legacy
        }, source="StateReceiver")
        return True
