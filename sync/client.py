"""
Scoreboard client: wires connection, roles, model and sync for one client.
"""

from typing import Optional, Callable, Dict, Any

from config import BOARD_CONFIG
from core.connection_manager import ConnectionManager, ConnectionStatus, build_ws_url
from core.logging_config import get_logger
from events import event_bus, EventTypes
from scoreboard.board import BoardDisplay
from scoreboard.controls import OperatorControls
from scoreboard.init_data import InitData
from scoreboard.model import GameStateModel
from .broadcaster import SyncBroadcaster
from .credential_store import CredentialStore, InMemoryCredentialStore
from .protocol import ClientType, GameStateMessage, RoleAssignment, RoleChanged, InboundMessage
from .receiver import StateReceiver
from .role_coordinator import RoleCoordinator

logger = get_logger(__name__)


class ScoreboardClient:
    """
    One operation console or display board connected to the relay.

    Operation clients get OperatorControls; board clients get a BoardDisplay.
    Everything that touches shared state runs under the connection lock, so
    transport callbacks, reconnect timers and operator input never interleave.
    """

    def __init__(self,
                 client_type: ClientType,
                 page_url: str,
                 embedded: bool = False,
                 store: Optional[CredentialStore] = None,
                 init_data: Optional[InitData] = None,
                 on_render: Optional[Callable[[str], None]] = None,
                 on_status_change: Optional[Callable[[ConnectionStatus, ConnectionStatus], None]] = None,
                 ws_factory=None,
                 timer_factory=None):
        self.client_type = client_type
        self.init_data = init_data
        self.store = store or InMemoryCredentialStore()

        self.model = GameStateModel()
        self.connection = ConnectionManager(
            build_ws_url(page_url, embedded),
            client_type,
            token_provider=self.store.get,
            on_message=self._dispatch,
            on_status_change=on_status_change,
            ws_factory=ws_factory,
            timer_factory=timer_factory
        )
        self.roles = RoleCoordinator(self.store, self.connection)
        self.broadcaster = SyncBroadcaster(self.connection, self.roles)
        self.receiver = StateReceiver(self.model, self.broadcaster)
        self.model.add_listener(self.broadcaster.on_state_changed)

        self.controls: Optional[OperatorControls] = None
        self.board: Optional[BoardDisplay] = None

        if client_type is ClientType.OPERATION:
            self.controls = OperatorControls(self.model, lambda: self.roles.operations_disabled)
            if init_data:
                self.model.apply_config(init_data)
        else:
            self.board = BoardDisplay(BOARD_CONFIG["default_background_color"], on_render)
            self.model.add_listener(self.board.on_state_changed)
            color = (init_data.board_background_color if init_data else None) or BOARD_CONFIG["background_color"]
            if color:
                self.board.set_background_color(color)

    @property
    def lock(self):
        return self.connection.lock

    def _dispatch(self, message: InboundMessage) -> None:
        """Route a decoded inbound message; runs under the connection lock"""
        if isinstance(message, RoleAssignment):
            self.roles.handle_role_assignment(message)
        elif isinstance(message, RoleChanged):
            self.roles.handle_role_changed(message)
        elif isinstance(message, GameStateMessage):
            self.receiver.handle(message)
        else:
            logger.debug(f"Ignoring message type: {message.type}")

    def start(self) -> None:
        logger.info(f"Starting {self.client_type.value} client")
        event_bus.emit(EventTypes.SYSTEM_START, {"client_type": self.client_type.value}, source="ScoreboardClient")
        self.connection.connect()

    def perform(self, operation: str, *args) -> bool:
        """
        Run one operator operation by name.

        Returns:
            False if refused (board client, slave role, unknown operation)
        """
        if self.controls is None:
            logger.debug(f"Board clients have no operations: {operation}")
            return False
        method = getattr(self.controls, operation, None)
        if method is None or operation.startswith("_") or not callable(method):
            logger.warning(f"Unknown operation: {operation}")
            return False
        with self.lock:
            return method(*args)

    def reload_config(self, force: bool = True) -> None:
        """Re-apply init data labels; force overwrites labels restored from the relay"""
        if not self.init_data:
            return
        with self.lock:
            self.model.apply_config(self.init_data, force=force)

    def release_master(self) -> bool:
        with self.lock:
            return self.roles.release_master()

    def restart(self) -> bool:
        return self.connection.restart()

    def get_status(self) -> Dict[str, Any]:
        with self.lock:
            status = {
                "client_type": self.client_type.value,
                "connection": self.connection.get_stats(),
                "role": self.roles.get_status(),
                "state": self.model.snapshot(),
                "status_text": self.model.status_text()
            }
            if self.board:
                status["background_color"] = self.board.background_color
            return status

    def shutdown(self) -> None:
        logger.info(f"Shutting down {self.client_type.value} client")
        self.connection.shutdown()
        event_bus.emit(EventTypes.SYSTEM_STOP, {"client_type": self.client_type.value}, source="ScoreboardClient")
