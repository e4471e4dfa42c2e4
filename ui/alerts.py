"""
Alert state container shared by every flow
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from api.models import ApiResponse, ErrorKind
from core.logging_config import get_logger
from events import event_bus, EventTypes

logger = get_logger(__name__)


class AlertType(Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ActionStyle(Enum):
    DEFAULT = "default"
    CANCEL = "cancel"
    DESTRUCTIVE = "destructive"


@dataclass
class AlertAction:
    text: str
    on_press: Optional[Callable[[], None]] = None
    style: ActionStyle = ActionStyle.DEFAULT


@dataclass
class AlertOptions:
    title: str
    message: str
    type: AlertType = AlertType.INFO
    actions: List[AlertAction] = field(default_factory=list)


class AlertManager:
    """Holds the single visible alert and notifies renderers"""

    def __init__(self):
        self.visible = False
        self.current = AlertOptions(title="", message="")
        self.history: List[AlertOptions] = []
        self.max_history = 50
        self._listeners: List[Callable[[AlertOptions, bool], None]] = []

    def add_listener(self, listener: Callable[[AlertOptions, bool], None]):
        """Register a renderer called with (options, visible)"""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[AlertOptions, bool], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def show_alert(self, title: str, message: str, type: AlertType = AlertType.INFO,
                   actions: Optional[List[AlertAction]] = None) -> AlertOptions:
        """Show an alert, replacing any visible one"""
        options = AlertOptions(title=title, message=message, type=type, actions=list(actions or []))
        self.current = options
        self.visible = True

        self.history.append(options)
        if len(self.history) > self.max_history:
            self.history.pop(0)

        logger.debug(f"Alert shown: [{type.value}] {title}")
        event_bus.emit(EventTypes.ALERT_SHOWN, {"title": title, "type": type.value}, source="alerts")
        self._notify()
        return options

    def hide_alert(self):
        if not self.visible:
            return
        self.visible = False
        event_bus.emit(EventTypes.ALERT_HIDDEN, {"title": self.current.title}, source="alerts")
        self._notify()

    def press(self, index: int):
        """Run the action at index, then close the alert"""
        if not self.visible:
            return
        actions = self.current.actions
        if not 0 <= index < len(actions):
            raise IndexError(f"Alert has no action {index}")

        action = actions[index]
        self.hide_alert()
        if action.on_press:
            action.on_press()

    def show_error(self, response: ApiResponse, title: str,
                   actions: Optional[List[AlertAction]] = None) -> AlertOptions:
        """Show a failed API response; network failures are warnings the user can retry"""
        alert_type = AlertType.WARNING if response.error_kind == ErrorKind.NETWORK else AlertType.ERROR
        return self.show_alert(title, response.error or "", alert_type, actions)

    def _notify(self):
        for listener in self._listeners:
            try:
                listener(self.current, self.visible)
            except Exception:
                logger.exception("Error in alert listener")
