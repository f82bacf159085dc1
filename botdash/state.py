import copy
import enum
import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from botdash.constants import DEFAULT_ALLOW_CLEAR_CONSOLE

logger = logging.getLogger(__name__)


class Screen(enum.Enum):
    MAIN = "main"
    MINI = "mini"
    CONFIG = "config"
    WALLET = "wallet"
    LOGS = "logs"


@dataclass(frozen=True)
class Cursor:
    x: int = 0
    y: int = 0

    def moved(self, dx: int, dy: int, x_max: int, y_max: int) -> "Cursor":
        """Step by (dx, dy), clamped to [0, x_max] x [0, y_max]."""
        x = min(max(self.x + dx, 0), max(x_max, 0))
        y = min(max(self.y + dy, 0), max(y_max, 0))
        return replace(self, x=x, y=y)


@dataclass
class UIState:
    current_screen: Screen = Screen.MAIN
    allow_clear_console: bool = DEFAULT_ALLOW_CLEAR_CONSOLE
    cursor: Cursor = field(default_factory=Cursor)


Updater = Callable[[UIState], None]
Listener = Callable[[UIState], None]


class UIStateStore:
    """Holds the one UIState of the process.

    Readers get a private copy; writers go through set_state, which applies
    the updater to a draft and publishes it only if the updater returns.
    """

    def __init__(self, initial: Optional[UIState] = None):
        self._state = initial if initial is not None else UIState()
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    def get_state(self) -> UIState:
        with self._lock:
            return copy.deepcopy(self._state)

    def set_state(self, updater: Updater) -> UIState:
        with self._lock:
            draft = copy.deepcopy(self._state)
            updater(draft)
            self._state = draft
            published = copy.deepcopy(draft)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(copy.deepcopy(published))
            except Exception:
                logger.exception("UI state listener failed")
        return published

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
