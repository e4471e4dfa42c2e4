"""
Session state machine: ANONYMOUS -> OTP_PENDING -> AUTHENTICATED
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List

from events import event_bus, EventTypes
from .logging_config import get_logger

logger = get_logger(__name__)


class SessionState(Enum):
    ANONYMOUS = "anonymous"
    OTP_PENDING = "otp_pending"
    AUTHENTICATED = "authenticated"


@dataclass
class StateTransition:
    from_state: SessionState
    to_state: SessionState
    reason: str = ""
    timestamp: float = field(default_factory=time.time)

    def __str__(self):
        return f"{self.from_state.value} → {self.to_state.value} ({self.reason})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_state.value,
            "to": self.to_state.value,
            "reason": self.reason,
            "timestamp": self.timestamp,
            "datetime": datetime.fromtimestamp(self.timestamp).isoformat(),
        }


StateListener = Callable[[SessionState, SessionState], None]


class SessionStateManager:
    """
    Tracks where the user is in the login lifecycle.

    Refused transitions are logged and reported as False.
    """

    VALID_TRANSITIONS = {
        SessionState.ANONYMOUS: {SessionState.OTP_PENDING, SessionState.AUTHENTICATED},
        # Resend keeps the state; cancel or a token-less verification goes back
        SessionState.OTP_PENDING: {SessionState.OTP_PENDING, SessionState.AUTHENTICATED, SessionState.ANONYMOUS},
        SessionState.AUTHENTICATED: {SessionState.ANONYMOUS},
    }

    def __init__(self, initial_state: SessionState = SessionState.ANONYMOUS, max_history: int = 100):
        self._state = initial_state
        self._lock = threading.RLock()
        self._entered_at = time.time()
        self._history: List[StateTransition] = []
        self._max_history = max_history
        self._listeners: List[StateListener] = []

    def get_state(self) -> SessionState:
        with self._lock:
            return self._state

    def is_authenticated(self) -> bool:
        return self.get_state() == SessionState.AUTHENTICATED

    def is_otp_pending(self) -> bool:
        return self.get_state() == SessionState.OTP_PENDING

    def transition_to(self, new_state: SessionState, reason: str = "") -> bool:
        """Move to new_state; returns False when the move is not allowed"""
        with self._lock:
            old_state = self._state
            if new_state not in self.VALID_TRANSITIONS[old_state]:
                logger.warning(f"Refused session transition {old_state.value} → {new_state.value} ({reason})")
                return False

            transition = StateTransition(old_state, new_state, reason)
            self._history.append(transition)
            del self._history[:-self._max_history]
            self._state = new_state
            self._entered_at = transition.timestamp

        logger.info(f"Session transition: {transition}")
        event_bus.emit(EventTypes.SESSION_TRANSITION, {
            "from_state": old_state.value,
            "to_state": new_state.value,
            "reason": reason,
        }, source="session_state")

        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("Session state listener failed")
        return True

    def reset(self, reason: str = "Session cleared") -> bool:
        """Back to ANONYMOUS; False when already there"""
        with self._lock:
            if self._state == SessionState.ANONYMOUS:
                return False
            return self.transition_to(SessionState.ANONYMOUS, reason)

    def add_listener(self, listener: StateListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_transition_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            return [t.to_dict() for t in self._history[-limit:]]
