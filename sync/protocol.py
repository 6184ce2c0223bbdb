"""
Relay wire protocol

Envelopes are JSON objects discriminated by "type". Inbound frames are
resolved into one of the message classes here, once; an envelope without a
"type" is the legacy form of a game state broadcast and becomes a
GameStateMessage flagged as legacy.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from core.exceptions import ProtocolError


class ClientType(Enum):
    """Kind of client declared in the handshake"""
    OPERATION = "operation"
    BOARD = "board"


class Role(Enum):
    """Role assigned by the relay"""
    UNASSIGNED = "unassigned"
    MASTER = "master"
    SLAVE = "slave"
    VIEWER = "viewer"

    @classmethod
    def from_wire(cls, value: Any) -> 'Role':
        if not isinstance(value, str):
            raise ProtocolError(f"Role must be a string, got {type(value).__name__}", value)
        try:
            return cls(value.lower())
        except ValueError:
            raise ProtocolError(f"Unknown role: {value}", value)


class MessageType:
    HANDSHAKE = "handshake"
    ROLE_ASSIGNMENT = "role_assignment"
    ROLE_CHANGED = "role_changed"
    GAME_STATE = "game_state"
    GAME_STATE_UPDATE = "game_state_update"
    RELEASE_MASTER = "release_master"


@dataclass
class Handshake:
    """First message a client sends after the connection opens"""
    client_type: ClientType
    master_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        message = {"type": MessageType.HANDSHAKE, "clientType": self.client_type.value}
        if self.master_token:
            message["masterToken"] = self.master_token
        return message


@dataclass
class RoleAssignment:
    """Sent once by the relay right after the handshake"""
    role: Role
    client_id: Any
    master_client_id: Any = None
    master_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleAssignment':
        if "role" not in data:
            raise ProtocolError("role_assignment without role", data)
        return cls(
            role=Role.from_wire(data["role"]),
            client_id=data.get("clientId"),
            master_client_id=data.get("masterClientId"),
            master_token=_optional_str(data, "masterToken"),
        )


@dataclass
class RoleChanged:
    """Sent by the relay whenever the role changes later on (release, failover)"""
    new_role: Role
    reason: str = ""
    client_id: Any = None
    master_client_id: Any = None
    master_token: Optional[str] = None
    clear_token: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleChanged':
        if "newRole" not in data:
            raise ProtocolError("role_changed without newRole", data)
        return cls(
            new_role=Role.from_wire(data["newRole"]),
            reason=str(data.get("reason") or ""),
            client_id=data.get("clientId"),
            master_client_id=data.get("masterClientId"),
            master_token=_optional_str(data, "masterToken"),
            clear_token=data.get("clearToken") is True,
        )


@dataclass
class GameStateMessage:
    """Game state broadcast; payload holds whatever subset of fields was sent"""
    payload: Dict[str, Any] = field(default_factory=dict)
    legacy: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], legacy: bool = False) -> 'GameStateMessage':
        if "boardData" in data:
            payload = data["boardData"]
        elif "data" in data:
            payload = data["data"]
        else:
            payload = {k: v for k, v in data.items() if k != "type"}
        if not isinstance(payload, dict):
            raise ProtocolError(f"Game state payload must be an object, got {type(payload).__name__}", data)
        return cls(payload=payload, legacy=legacy)


@dataclass
class GameStateUpdate:
    """Full snapshot sent by the master"""
    board_data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": MessageType.GAME_STATE_UPDATE, "boardData": self.board_data}


@dataclass
class ReleaseMaster:
    """Voluntary hand-back of master authority"""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": MessageType.RELEASE_MASTER}


@dataclass
class UnknownMessage:
    """Any typed envelope this client does not consume"""
    type: str
    raw: Dict[str, Any] = field(default_factory=dict)


InboundMessage = Union[RoleAssignment, RoleChanged, GameStateMessage, UnknownMessage]
OutboundMessage = Union[Handshake, GameStateUpdate, ReleaseMaster]


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProtocolError(f"{key} must be a string", data)
    return value or None


def parse_message(raw: Union[str, bytes, Dict[str, Any]]) -> InboundMessage:
    """
    Decode an inbound frame into a message object.

    Args:
        raw: Text frame from the transport, or an already decoded object

    Returns:
        One of RoleAssignment, RoleChanged, GameStateMessage, UnknownMessage

    Raises:
        ProtocolError: If the frame is not a well-formed envelope
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(f"Invalid JSON: {e}", raw) from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise ProtocolError(f"Envelope must be a JSON object, got {type(data).__name__}", data)

    message_type = data.get("type")
    if not message_type:
        return GameStateMessage.from_dict(data, legacy=True)
    if message_type == MessageType.ROLE_ASSIGNMENT:
        return RoleAssignment.from_dict(data)
    if message_type == MessageType.ROLE_CHANGED:
        return RoleChanged.from_dict(data)
    if message_type == MessageType.GAME_STATE:
        return GameStateMessage.from_dict(data)
    return UnknownMessage(type=str(message_type), raw=data)


def encode_message(message: OutboundMessage) -> str:
    return json.dumps(message.to_dict(), ensure_ascii=False)
