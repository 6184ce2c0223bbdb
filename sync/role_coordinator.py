"""
Role coordination for relay clients.

The relay decides who is master; this side only records what it was told,
keeps the reclaim token in step with it, and tells the operator surface
whether it may act.
"""

from typing import Any, Callable, List, Optional

from core.logging_config import get_logger
from events import event_bus, EventTypes
from .credential_store import CredentialStore
from .protocol import Role, RoleAssignment, RoleChanged, ReleaseMaster

logger = get_logger(__name__)

RoleListener = Callable[[Role, Role], None]


class RoleCoordinator:
    """Tracks the role assigned by the relay"""

    def __init__(self, store: CredentialStore, connection):
        """
        Args:
            store: Where the master reclaim token is kept
            connection: ConnectionManager used for release requests
        """
        self.store = store
        self.connection = connection
        self.role = Role.UNASSIGNED
        self.client_id: Any = None
        self.master_client_id: Any = None
        self._listeners: List[RoleListener] = []

    @property
    def is_master(self) -> bool:
        return self.role is Role.MASTER

    @property
    def operations_disabled(self) -> bool:
        """Only a slave is locked out; viewers have no operator surface to lock"""
        return self.role is Role.SLAVE

    def add_listener(self, callback: RoleListener) -> None:
        self._listeners.append(callback)

    def _set_role(self, new_role: Role) -> None:
        old_role = self.role
        self.role = new_role
        if old_role is new_role:
            return
        for callback in list(self._listeners):
            try:
                callback(old_role, new_role)
            except Exception as e:
                logger.error(f"Error in role listener: {e}", exc_info=True)

    def handle_role_assignment(self, message: RoleAssignment) -> None:
        self.client_id = message.client_id
        self.master_client_id = message.master_client_id
        self._set_role(message.role)

        if message.role is Role.MASTER and message.master_token:
            self.store.set(message.master_token)

        logger.info(
            f"Role assigned: {message.role.value}",
            extra={"extra_data": {"client_id": self.client_id, "master_client_id": self.master_client_id}}
        )
        event_bus.emit(EventTypes.ROLE_ASSIGNED, {
            "role": message.role.value,
            "client_id": self.client_id,
            "master_client_id": self.master_client_id
        }, source="RoleCoordinator")

    def handle_role_changed(self, message: RoleChanged) -> None:
        old_role = self.role
        if message.client_id is not None:
            self.client_id = message.client_id
        if message.master_client_id is not None:
            self.master_client_id = message.master_client_id
        self._set_role(message.new_role)

        if message.new_role is Role.MASTER and message.master_token:
            self.store.set(message.master_token)
        if message.clear_token:
            self.store.clear()

        logger.info(f"Role changed: {old_role.value} -> {message.new_role.value} ({message.reason or 'no reason'})")
        event_bus.emit(EventTypes.ROLE_CHANGED, {
            "old_role": old_role.value,
            "new_role": message.new_role.value,
            "reason": message.reason
        }, source="RoleCoordinator")

    def release_master(self) -> bool:
        """
        Ask the relay to hand mastership to someone else.

        The local role stays master until the relay answers with role_changed.

        Returns:
            True if the request was sent
        """
        if not self.is_master:
            logger.debug("Release ignored: not master")
            return False
        if not self.connection.is_open:
            logger.debug("Release ignored: connection not open")
            return False
        if not self.connection.send(ReleaseMaster()):
            return False

        self.store.clear()
        logger.info("Master release requested")
        event_bus.emit(EventTypes.MASTER_RELEASED, {"client_id": self.client_id}, source="RoleCoordinator")
        return True

    def get_status(self) -> dict:
        return {
            "role": self.role.value,
            "client_id": self.client_id,
            "master_client_id": self.master_client_id,
            "operations_disabled": self.operations_disabled,
            "has_token": self.store.get() is not None
        }


def describe_role(role: Optional[Role]) -> str:
    """Short label the operation console shows next to the controls"""
    if role is Role.MASTER:
        return "MASTER (in control)"
    if role is Role.SLAVE:
        return "SLAVE (read only)"
    if role is Role.VIEWER:
        return "VIEWER"
    return "waiting for relay"
