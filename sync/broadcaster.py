"""
Outbound side of state sync: the master pushes full snapshots to the relay
"""

from contextlib import contextmanager

from core.logging_config import get_logger
from events import event_bus, EventTypes
from scoreboard.state import GameState
from .protocol import GameStateUpdate

logger = get_logger(__name__)


class SyncBroadcaster:
    """Model listener that sends game_state_update while this client is master"""

    def __init__(self, connection, roles):
        """
        Args:
            connection: ConnectionManager the snapshots go out on
            roles: RoleCoordinator deciding whether we may send
        """
        self.connection = connection
        self.roles = roles
        self._remote_update = False
        self.broadcasts_sent = 0
        self.echoes_suppressed = 0

    @contextmanager
    def suppress_echo(self):
        """
        Window in which the next model notification came from the relay.

        The notification it causes is swallowed instead of being sent back.
        The flag never outlives the window, so a merge that changed nothing
        cannot eat the next local change.
        """
        self._remote_update = True
        try:
            yield
        finally:
            self._remote_update = False

    def on_state_changed(self, state: GameState) -> None:
        """Model listener"""
        if self._remote_update:
            self._remote_update = False
            self.echoes_suppressed += 1
            logger.debug("Remote update applied, not re-broadcasting")
            return

        if not self.roles.is_master:
            return
        if not self.connection.is_open:
            logger.debug("Not connected, snapshot not sent")
            return

        if self.connection.send(GameStateUpdate(board_data=state.to_wire())):
            self.broadcasts_sent += 1
            event_bus.emit(EventTypes.STATE_BROADCAST, {
                "inning": state.inning,
                "top": state.top
            }, source="SyncBroadcaster")
