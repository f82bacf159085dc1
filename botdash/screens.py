import logging
import threading
from typing import Optional, Union

from botdash.bot import BusinessSnapshot, SnapshotSource
from botdash.composer import compose_banner
from botdash.constants import MINI_MODE_BANNER, MINI_MODE_EXIT
from botdash.events import EventQueue
from botdash.render import RenderLoop
from botdash.state import Screen, UIState, UIStateStore
from botdash.surface import OutputSurface

logger = logging.getLogger(__name__)


class MiniModeSubscription:
    """Renders the condensed view whenever the bot publishes a new snapshot.

    Snapshot notifications arrive on the publisher's thread; they are turned
    into render events on the dispatch queue, at most one queued at a time.
    """

    def __init__(self, source: SnapshotSource, events: EventQueue, render_loop: RenderLoop):
        self._source = source
        self._events = events
        self._render_loop = render_loop
        self._unsubscribe = None
        self._pending = threading.Event()

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._render_loop.mini.reset()
        self._unsubscribe = self._source.subscribe(self._on_snapshot)
        logger.debug("mini mode subscription started")

    def stop(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
            logger.debug("mini mode subscription stopped")

    def _on_snapshot(self, snapshot: BusinessSnapshot) -> None:
        if self._pending.is_set():
            return
        self._pending.set()
        if not self._events.post(self._render, label="mini mode update"):
            self._pending.clear()

    def _render(self) -> None:
        self._pending.clear()
        # A notification can still be queued after the subscription stopped
        if not self.active:
            return
        if self._render_loop.store.get_state().current_screen is not Screen.MINI:
            return
        self._render_loop.render_now()


class ScreenStateMachine:
    """Owns transitions between screens and their side effects.

    Methods run on the dispatch worker, like every other UI mutation.
    """

    def __init__(self, store: UIStateStore, render_loop: RenderLoop,
                 subscription: MiniModeSubscription, surface: OutputSurface):
        self._store = store
        self._render_loop = render_loop
        self._subscription = subscription
        self._surface = surface
        self._saved_allow_clear: Optional[bool] = None

    @property
    def current(self) -> Screen:
        return self._store.get_state().current_screen

    @property
    def mini_active(self) -> bool:
        return self._subscription.active

    def set_current_screen(self, target: Union[Screen, str]) -> Screen:
        """Switch to target, run exit/entry effects, then render once.

        Returns the previous screen. Re-entering the active screen only
        renders.
        """
        target = Screen(target)
        previous = []

        def updater(draft: UIState):
            prev = draft.current_screen
            previous.append(prev)
            draft.current_screen = target
            if prev is target:
                return
            if prev is Screen.MINI and self._saved_allow_clear is not None:
                draft.allow_clear_console = self._saved_allow_clear
            if target is Screen.MINI:
                self._saved_allow_clear = draft.allow_clear_console
                draft.allow_clear_console = False

        self._store.set_state(updater)
        prev = previous[-1]
        logger.info("screen %s -> %s", prev.value, target.value)

        if prev is not target:
            if prev is Screen.MINI:
                self._leave_mini()
            if target is Screen.MINI:
                self._enter_mini()

        self._render_loop.render_now()
        return prev

    def toggle_mini(self) -> Screen:
        if self.current is Screen.MAIN:
            return self.set_current_screen(Screen.MINI)
        return self.set_current_screen(Screen.MAIN)

    def shutdown(self) -> None:
        self._subscription.stop()

    def _enter_mini(self) -> None:
        self._subscription.start()
        self._surface.write(compose_banner(MINI_MODE_BANNER, warning=MINI_MODE_BANNER[3],
                                           width=self._render_loop.width))

    def _leave_mini(self) -> None:
        self._subscription.stop()
        self._saved_allow_clear = None
        self._surface.write(MINI_MODE_EXIT)
