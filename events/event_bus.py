"""
Process-wide event bus for client activity.

Producers (API client, session state, flows, UI containers) call ``emit``
from any thread or from the event loop; listeners run on the bus's own
daemon thread so a slow listener never stalls a request.
"""

import logging
import threading
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from queue import Empty, Queue
from typing import Any, Callable, Deque, Dict, List, Optional

# Plain logging here: core.logging_config sits above this package in the import graph
logger = logging.getLogger(__name__)

Listener = Callable[["SystemEvent"], None]
WILDCARD = "*"


@dataclass
class SystemEvent:
    type: str
    data: Dict[str, Any]
    source: str = "system"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)

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
    """Queue plus dispatcher thread; history is bounded by ``max_history``"""

    def __init__(self, max_history: int = 1000):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._queue: Queue = Queue()
        self._history: Deque[SystemEvent] = deque(maxlen=max_history)
        self._lock = threading.Lock()
        self._running = True
        self.event_counts: Dict[str, int] = defaultdict(int)
        self.listener_errors = 0

        self._dispatcher = threading.Thread(target=self._dispatch_loop, name="EventBusDispatcher", daemon=True)
        self._dispatcher.start()

    def emit(self, event_type: str, data: Dict[str, Any], source: Optional[str] = None):
        self._queue.put(SystemEvent(event_type, data, source or "system"))

    def on(self, event_type: str, callback: Listener):
        with self._lock:
            self._listeners[event_type].append(callback)

    def on_all(self, callback: Listener):
        self.on(WILDCARD, callback)

    def off(self, event_type: str, callback: Listener):
        with self._lock:
            if callback in self._listeners[event_type]:
                self._listeners[event_type].remove(callback)

    def _dispatch_loop(self):
        while self._running:
            try:
                event = self._queue.get(timeout=0.1)
            except Empty:
                continue
            try:
                self._dispatch(event)
            finally:
                self._queue.task_done()

    def _dispatch(self, event: SystemEvent):
        with self._lock:
            self.event_counts[event.type] += 1
            self._history.append(event)
            targets = self._listeners.get(event.type, []) + self._listeners.get(WILDCARD, [])

        for listener in targets:
            try:
                listener(event)
            except Exception:
                self.listener_errors += 1
                logger.exception(f"Event listener failed for {event.type}")

    def wait_until_idle(self, timeout: float = 2.0) -> bool:
        """Block until every queued event has been dispatched; False on timeout"""
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total_events": sum(self.event_counts.values()),
                "event_counts": dict(self.event_counts),
                "queue_size": self._queue.qsize(),
                "history_size": len(self._history),
                "listener_errors": self.listener_errors,
                "listener_counts": {k: len(v) for k, v in self._listeners.items() if v},
            }

    def get_recent_events(self, count: int = 50, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            events = list(self._history)
        if event_type:
            events = [e for e in events if e.type == event_type]
        return [e.to_dict() for e in events[-count:]]

    def shutdown(self):
        self._running = False
        if self._dispatcher.is_alive() and self._dispatcher is not threading.current_thread():
            self._dispatcher.join(timeout=2.0)


event_bus = EventBus()


class EventTypes:
    """Event names emitted by the client"""

    # API client
    API_REQUEST_START = "api.request_start"
    API_REQUEST_COMPLETE = "api.request_complete"
    API_REQUEST_ERROR = "api.request_error"
    API_REQUEST_SUPERSEDED = "api.request_superseded"

    # Session
    SESSION_TRANSITION = "session.transition"
    SESSION_CLEARED = "session.cleared"

    # Search and scan
    SEARCH_SUGGESTIONS = "search.suggestions"
    SEARCH_RESULTS = "search.results"
    SCAN_RESULTS = "scan.results"

    # UI state
    ALERT_SHOWN = "alert.shown"
    ALERT_HIDDEN = "alert.hidden"
    THEME_CHANGED = "theme.changed"
    LANGUAGE_CHANGED = "language.changed"

    # System
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"
    SYSTEM_ERROR = "system.error"
