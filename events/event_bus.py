"""
In-process event bus for connection, role and sync events.

Components emit from whatever thread they run on (transport callbacks,
reconnect timers, the console); listeners run on the bus's own processor
thread so a slow listener never holds the connection lock.
"""

import threading
import time
import uuid
from collections import defaultdict, deque
from datetime import datetime
from queue import Queue, Empty
from typing import Dict, Any, List, Callable, Optional, Deque

from core.logging_config import get_logger

logger = get_logger(__name__)

EventListener = Callable[["SystemEvent"], None]

WILDCARD = "*"


class SystemEvent:
    """One emitted event"""

    def __init__(self, event_type: str, data: Dict[str, Any], source: str = None):
        self.id = uuid.uuid4().hex
        self.type = event_type
        self.data = data
        self.source = source or "system"
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data,
            "source": self.source,
            "timestamp": self.timestamp,
            "datetime": datetime.fromtimestamp(self.timestamp).isoformat(),
        }


class EventBus:
    """Queue plus processor thread; keeps a bounded history for status output"""

    def __init__(self, max_history: int = 500):
        self.listeners: Dict[str, List[EventListener]] = defaultdict(list)
        self.event_queue: Queue = Queue()
        self.event_history: Deque[SystemEvent] = deque(maxlen=max_history)
        self.event_counts: Dict[str, int] = defaultdict(int)
        self.listener_errors = 0
        self._history_lock = threading.Lock()

        self._running = True
        self._processor_thread = threading.Thread(target=self._process_events, daemon=True, name="EventBusProcessor")
        self._processor_thread.start()

    def emit(self, event_type: str, data: Dict[str, Any], source: str = None):
        self.event_queue.put(SystemEvent(event_type, data, source))

    def on(self, event_type: str, callback: EventListener):
        self.listeners[event_type].append(callback)

    def on_all(self, callback: EventListener):
        self.listeners[WILDCARD].append(callback)

    def off(self, event_type: str, callback: EventListener):
        if callback in self.listeners[event_type]:
            self.listeners[event_type].remove(callback)

    def _process_events(self):
        while self._running:
            try:
                event = self.event_queue.get(timeout=0.1)
            except Empty:
                continue
            self._dispatch(event)

    def _dispatch(self, event: SystemEvent):
        with self._history_lock:
            self.event_history.append(event)
            self.event_counts[event.type] += 1

        # Type-specific listeners first, then wildcard ones
        targets = list(self.listeners.get(event.type, [])) + list(self.listeners.get(WILDCARD, []))
        for listener in targets:
            try:
                listener(event)
            except Exception as e:
                self.listener_errors += 1
                logger.error(f"Error in event listener for {event.type}: {e}", exc_info=True)

    def get_stats(self) -> Dict[str, Any]:
        with self._history_lock:
            return {
                "total_events": sum(self.event_counts.values()),
                "event_counts": dict(self.event_counts),
                "queue_size": self.event_queue.qsize(),
                "history_size": len(self.event_history),
                "listener_errors": self.listener_errors,
                "listener_counts": {
                    event_type: len(listeners)
                    for event_type, listeners in self.listeners.items()
                    if listeners
                },
            }

    def get_recent_events(self, count: int = 50, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest last; filtered by type before the count is applied"""
        with self._history_lock:
            events = list(self.event_history)
        if event_type:
            events = [e for e in events if e.type == event_type]
        return [e.to_dict() for e in events[-count:]]

    def shutdown(self):
        self._running = False
        if self._processor_thread.is_alive():
            self._processor_thread.join(timeout=2.0)


event_bus = EventBus()


class EventTypes:
    """Event names emitted by the scoreboard clients"""

    # Relay connection
    CONNECTION_OPEN = "connection.open"
    CONNECTION_CLOSED = "connection.closed"
    CONNECTION_ERROR = "connection.error"
    RECONNECT_SCHEDULED = "connection.reconnect_scheduled"
    CONNECTION_LOST = "connection.lost"

    # Roles
    ROLE_ASSIGNED = "role.assigned"
    ROLE_CHANGED = "role.changed"
    MASTER_RELEASED = "role.master_released"

    # State sync
    STATE_BROADCAST = "sync.state_broadcast"
    STATE_RECEIVED = "sync.state_received"
    MESSAGE_REJECTED = "sync.message_rejected"

    # Client lifecycle
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"
