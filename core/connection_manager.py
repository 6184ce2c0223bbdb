"""
Connection manager for the relay WebSocket lifecycle and reconnect backoff
"""

import threading
from enum import Enum
from typing import Optional, Callable, Dict, Any
from urllib.parse import urlparse

import websocket

from config import CONNECTION_CONFIG
from core.exceptions import ProtocolError
from core.logging_config import get_logger
from events import event_bus, EventTypes
from sync.protocol import (
    ClientType, Handshake, InboundMessage, OutboundMessage,
    encode_message, parse_message,
)

logger = get_logger(__name__)


class ConnectionStatus(Enum):
    """Connection states; DISCONNECTED is terminal until restart()"""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"


def build_ws_url(page_url: str,
                 embedded: bool = False,
                 path: str = CONNECTION_CONFIG["ws_path"],
                 embedded_host: str = CONNECTION_CONFIG["embedded_host"]) -> str:
    """
    Derive the relay URL from the page the client was served from.

    Secure pages get wss://, everything else ws://. Inside the desktop
    shell the relay always runs on the fixed loopback address.
    """
    parsed = urlparse(page_url)
    scheme = "wss" if parsed.scheme == "https" else "ws"
    host = embedded_host if embedded else parsed.netloc
    if not host:
        raise ValueError(f"Cannot derive relay host from page URL: {page_url!r}")
    return f"{scheme}://{host}{path}"


def reconnect_delay_ms(attempts: int,
                       base_delay_ms: int = CONNECTION_CONFIG["base_delay_ms"],
                       max_delay_ms: int = CONNECTION_CONFIG["max_delay_ms"]) -> int:
    """Exponential backoff: base * 2^attempts, capped"""
    return min(base_delay_ms * (2 ** attempts), max_delay_ms)


def _default_timer(delay_seconds: float, callback: Callable[[], None]):
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    return timer


class ConnectionManager:
    """Owns the relay connection, the handshake and the reconnect timer"""

    def __init__(self,
                 url: str,
                 client_type: ClientType,
                 token_provider: Optional[Callable[[], Optional[str]]] = None,
                 on_message: Optional[Callable[[InboundMessage], None]] = None,
                 on_status_change: Optional[Callable[[ConnectionStatus, ConnectionStatus], None]] = None,
                 max_attempts: int = CONNECTION_CONFIG["max_attempts"],
                 base_delay_ms: int = CONNECTION_CONFIG["base_delay_ms"],
                 max_delay_ms: int = CONNECTION_CONFIG["max_delay_ms"],
                 ws_factory: Optional[Callable[..., Any]] = None,
                 timer_factory: Optional[Callable[[float, Callable[[], None]], Any]] = None):
        """
        Initialize connection manager

        Args:
            url: Relay WebSocket URL (see build_ws_url)
            client_type: Declared in the handshake
            token_provider: Returns the stored master token, if any
            on_message: Receives every decoded inbound message
            on_status_change: Called with (old, new) on every status change
            max_attempts: Reconnect attempts before giving up for good
            base_delay_ms: First reconnect delay
            max_delay_ms: Reconnect delay cap
            ws_factory: Builds the transport (websocket.WebSocketApp by default)
            timer_factory: Builds one-shot timers (threading.Timer by default)
        """
        self.url = url
        self.client_type = client_type
        self.token_provider = token_provider
        self.on_message = on_message
        self.on_status_change = on_status_change
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._ws_factory = ws_factory or websocket.WebSocketApp
        self._timer_factory = timer_factory or _default_timer

        # Serializes transport callbacks, timer expiry and caller operations
        self.lock = threading.RLock()

        # Connection state
        self.status = ConnectionStatus.CONNECTING
        self.attempts = 0
        self.ws = None
        self.ws_thread: Optional[threading.Thread] = None
        self._reconnect_timer = None
        self._timer_generation = 0

        # Stats
        self.messages_sent = 0
        self.messages_received = 0
        self.messages_rejected = 0

    @property
    def is_open(self) -> bool:
        with self.lock:
            return self.status is ConnectionStatus.CONNECTED and self.ws is not None

    @property
    def has_pending_reconnect(self) -> bool:
        with self.lock:
            return self._reconnect_timer is not None

    def _set_status(self, new_status: ConnectionStatus):
        old_status = self.status
        if old_status is new_status:
            return
        self.status = new_status
        logger.info(f"Connection status: {old_status.value} -> {new_status.value}")
        if self.on_status_change:
            try:
                self.on_status_change(old_status, new_status)
            except Exception as e:
                logger.error(f"Error in status change callback: {e}", exc_info=True)

    def connect(self):
        """Open a new connection to the relay, replacing any previous one"""
        with self.lock:
            if self.status is ConnectionStatus.DISCONNECTED:
                logger.warning("Connection is shut down; use restart() to connect again")
                return

            self.cancel_reconnect()
            previous, self.ws = self.ws, None
            if previous is not None:
                logger.info("Closing previous relay connection before reconnecting")
                self._set_status(ConnectionStatus.CONNECTING)
                try:
                    previous.close()
                except Exception as e:
                    logger.debug(f"Error closing WebSocket: {e}")

            logger.info(f"Connecting to relay at {self.url} as {self.client_type.value} client")
            try:
                ws = self._ws_factory(
                    self.url,
                    on_open=self._on_open,
                    on_message=self._on_message,
                    on_error=self._on_error,
                    on_close=self._on_close
                )
            except Exception as e:
                logger.error(f"Failed to create WebSocket: {e}")
                self.ws = None
                self._handle_connection_lost()
                return

            self.ws = ws
            self.ws_thread = threading.Thread(
                target=self._run_websocket, args=(ws,), daemon=True, name="RelayWSThread"
            )
            self.ws_thread.start()

    def _run_websocket(self, ws):
        """Run the WebSocket connection with error handling"""
        try:
            ws.run_forever()
        except Exception as e:
            logger.error(f"WebSocket run_forever failed: {e}")
            self._on_close(ws, None, str(e))

    def _on_open(self, ws):
        with self.lock:
            if ws is not self.ws:
                return
            self._set_status(ConnectionStatus.CONNECTED)
            self.attempts = 0
            logger.info("WebSocket connection established")

            token = self.token_provider() if self.token_provider else None
            handshake = Handshake(client_type=self.client_type, master_token=token)
            logger.debug(f"Sending handshake {'with' if token else 'without'} master token")
            self.send(handshake)

            event_bus.emit(EventTypes.CONNECTION_OPEN, {
                "url": self.url,
                "client_type": self.client_type.value,
                "with_token": bool(token)
            }, source="ConnectionManager")

    def _on_message(self, ws, raw):
        with self.lock:
            if ws is not self.ws:
                return
            self.messages_received += 1
            try:
                message = parse_message(raw)
            except ProtocolError as e:
                self.messages_rejected += 1
                logger.warning(f"Dropping malformed message: {e}", extra={"extra_data": e.details})
                event_bus.emit(EventTypes.MESSAGE_REJECTED, {"error": str(e)}, source="ConnectionManager")
                return

            if self.on_message:
                try:
                    self.on_message(message)
                except Exception as e:
                    logger.error(f"Error handling {type(message).__name__}: {e}", exc_info=True)

    def _on_error(self, ws, error):
        with self.lock:
            if ws is not self.ws:
                return
        logger.error(f"WebSocket error: {error}")
        event_bus.emit(EventTypes.CONNECTION_ERROR, {"error": str(error)}, source="ConnectionManager")

    def _on_close(self, ws, close_status_code, close_msg):
        with self.lock:
            if ws is not self.ws:
                return
            logger.info(f"WebSocket closed (Code: {close_status_code}, Message: {close_msg})")
            self.ws = None
            event_bus.emit(EventTypes.CONNECTION_CLOSED, {
                "code": close_status_code,
                "reason": close_msg
            }, source="ConnectionManager")
            self._handle_connection_lost()

    def _handle_connection_lost(self):
        if self.status is ConnectionStatus.DISCONNECTED:
            return
        self._set_status(ConnectionStatus.RECONNECTING)
        self.schedule_reconnect()

    def schedule_reconnect(self):
        """Arm the single reconnect timer, or give up once attempts run out"""
        with self.lock:
            self.cancel_reconnect()

            if self.attempts >= self.max_attempts:
                logger.error(f"Max reconnection attempts ({self.max_attempts}) reached; reload required")
                self._set_status(ConnectionStatus.DISCONNECTED)
                event_bus.emit(EventTypes.CONNECTION_LOST, {
                    "attempts": self.attempts
                }, source="ConnectionManager")
                return

            delay_ms = reconnect_delay_ms(self.attempts, self.base_delay_ms, self.max_delay_ms)
            logger.info(f"Reconnecting in {delay_ms}ms (attempt {self.attempts + 1}/{self.max_attempts})")

            self._timer_generation += 1
            generation = self._timer_generation
            self._reconnect_timer = self._timer_factory(
                delay_ms / 1000.0, lambda: self._on_reconnect_timer(generation)
            )
            self._reconnect_timer.start()

            event_bus.emit(EventTypes.RECONNECT_SCHEDULED, {
                "delay_ms": delay_ms,
                "attempt": self.attempts + 1
            }, source="ConnectionManager")

    def _on_reconnect_timer(self, generation: int):
        with self.lock:
            # A cancelled timer may already be waiting on the lock
            if generation != self._timer_generation or self._reconnect_timer is None:
                return
            self._reconnect_timer = None
            if self.status is ConnectionStatus.DISCONNECTED:
                return
            self.attempts += 1
            self.connect()

    def cancel_reconnect(self):
        """Cancel a pending reconnect; idempotent"""
        with self.lock:
            if self._reconnect_timer:
                self._reconnect_timer.cancel()
                self._reconnect_timer = None

    def send(self, message: OutboundMessage) -> bool:
        """
        Send a message if the connection is open

        Returns:
            True if the message was written to the socket
        """
        with self.lock:
            if not self.is_open:
                logger.debug(f"Not connected, dropping outbound {type(message).__name__}")
                return False
            try:
                self.ws.send(encode_message(message))
            except (websocket.WebSocketException, OSError) as e:
                logger.warning(f"Error sending {type(message).__name__}: {e}")
                return False
            self.messages_sent += 1
            return True

    def restart(self) -> bool:
        """Start over after the terminal state (the reload the operator would do)"""
        with self.lock:
            if self.status is not ConnectionStatus.DISCONNECTED:
                return False
            logger.info("Restarting relay connection")
            self.attempts = 0
            self._set_status(ConnectionStatus.CONNECTING)
            self.connect()
            return True

    def get_stats(self) -> Dict[str, Any]:
        """Get connection statistics"""
        with self.lock:
            return {
                "url": self.url,
                "status": self.status.value,
                "attempts": self.attempts,
                "reconnect_pending": self._reconnect_timer is not None,
                "messages_sent": self.messages_sent,
                "messages_received": self.messages_received,
                "messages_rejected": self.messages_rejected
            }

    def shutdown(self):
        """Cancel any reconnect and close the active connection"""
        logger.info("Shutting down connection manager...")
        with self.lock:
            self.cancel_reconnect()
            self._set_status(ConnectionStatus.DISCONNECTED)
            ws, self.ws = self.ws, None
            if ws is not None:
                try:
                    ws.close()
                except Exception as e:
                    logger.debug(f"Error closing WebSocket: {e}")
            ws_thread = self.ws_thread

        if ws_thread and ws_thread.is_alive() and ws_thread is not threading.current_thread():
            ws_thread.join(timeout=2.0)
            if ws_thread.is_alive():
                logger.warning("WebSocket thread did not terminate")
