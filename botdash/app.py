import logging
import sys
import threading
from typing import Any, Callable, Mapping, Optional, Union

from botdash.bot import Bot
from botdash.config import Config, coerce_config, parse_config, validate_config
from botdash.constants import (
    CURSOR_X_MAX, STATUS_STOP, STATUS_EXECUTE_RECENT_ROUTE,
)
from botdash.errors import CollaboratorUnavailable, ConfigurationError
from botdash.events import EventQueue
from botdash.keyboard import Handler, KeyboardDispatcher, TerminalKeySource
from botdash.links import explorer_url, open_link
from botdash.logging_setup import setup_logging
from botdash.render import RenderLoop
from botdash.screens import MiniModeSubscription, ScreenStateMachine
from botdash.state import Screen, UIState, UIStateStore
from botdash.surface import OutputSurface, TerminalSurface

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 1.0


class Dashboard:
    """Wires the store, dispatcher, render loop and screens around one bot.

    Nothing runs until start(); tests drive it by feeding keys and
    draining the event queue on their own thread.
    """

    def __init__(self, bot: Bot, config: Optional[Union[Config, Mapping[str, Any]]] = None,
                 surface: Optional[OutputSurface] = None,
                 link_opener: Callable[[str], bool] = open_link):
        self.config = validate_config(coerce_config(config))
        self.bot = bot
        self.events = EventQueue()
        self.store = UIStateStore(UIState(allow_clear_console=self.config.allow_clear_console))
        self.surface = surface or TerminalSurface()
        self.keyboard = KeyboardDispatcher(self.events)
        self.render_loop = RenderLoop(bot.store, self.store, self.surface, self.events,
                                      fps=self.config.fps, width=self.config.width)
        self.subscription = MiniModeSubscription(bot.store, self.events, self.render_loop)
        self.screens = ScreenStateMachine(self.store, self.render_loop, self.subscription, self.surface)
        self._link_opener = link_opener
        self._key_source: Optional[TerminalKeySource] = None
        self._done = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopping = False
        self._install_bindings()

    def _install_bindings(self):
        kb = self.keyboard
        kb.on_key_press("ctrl+s", self.open_explorer)
        kb.on_key_press("ctrl+c", self.request_stop)

        # screens management
        kb.on_key_press("m", self.screens.toggle_mini)
        kb.on_key_press("c", lambda: self.screens.set_current_screen(Screen.CONFIG))
        kb.on_key_press("w", lambda: self.screens.set_current_screen(Screen.WALLET))
        kb.on_key_press("l", lambda: self.screens.set_current_screen(Screen.LOGS))

        # table navigation
        kb.on_key_press("up", lambda: self.move_cursor(0, -1))
        kb.on_key_press("down", lambda: self.move_cursor(0, 1))
        kb.on_key_press("left", lambda: self.move_cursor(-1, 0))
        kb.on_key_press("right", lambda: self.move_cursor(1, 0))

        kb.on_key_press("ctrl+e", lambda: self.bot.set_status(STATUS_EXECUTE_RECENT_ROUTE))

    # -- Key actions -----------------------------------------------------

    def move_cursor(self, dx: int, dy: int) -> None:
        y_max = max(len(self.bot.store.get_state().trade_history) - 1, 0)

        def updater(draft: UIState):
            draft.cursor = draft.cursor.moved(dx, dy, CURSOR_X_MAX, y_max)

        self.store.set_state(updater)
        self.render_loop.render_now()

    def open_explorer(self) -> None:
        try:
            address = self._wallet_address()
        except CollaboratorUnavailable as e:
            logger.info("explorer link skipped: %s", e)
            return
        url = explorer_url(address)
        logger.info("opening %s", url)
        self._link_opener(url)

    def _wallet_address(self) -> str:
        address = self.bot.store.get_state().wallet_address
        if not address:
            raise CollaboratorUnavailable("no wallet address available")
        return address

    def request_stop(self) -> None:
        self.bot.set_status(STATUS_STOP)
        self.stop(farewell="Exiting by user request...")

    # -- Lifecycle -------------------------------------------------------

    @property
    def stopped(self) -> bool:
        return self._done.is_set()

    def start(self, read_keys: bool = True) -> "DashboardHandle":
        self.events.start()
        self.render_loop.start()
        self.render_loop.request_render()
        if read_keys:
            self._key_source = TerminalKeySource(self.keyboard.feed_raw)
            self._key_source.start()
        return DashboardHandle(self)

    def stop(self, farewell: Optional[str] = None) -> bool:
        """Stop the timer, the mini subscription and key input, then the queue.

        Safe to call from any thread, including from a key handler. Only the
        first call shuts down and writes `farewell`; it returns True. Later
        calls return False, after waiting for that shutdown to finish unless
        they run on the dispatch worker the shutdown may be joining.
        """
        with self._stop_lock:
            first = not self._stopping
            self._stopping = True
        if not first:
            if not self.events.on_worker_thread():
                self._done.wait(STOP_TIMEOUT)
            return False

        self.render_loop.stop()
        self.screens.shutdown()
        if self._key_source is not None:
            self._key_source.stop()
        self.events.stop(timeout=STOP_TIMEOUT)
        try:
            if farewell:
                self.surface.write(farewell)
        finally:
            self._done.set()
        logger.info("dashboard stopped")
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


class DashboardHandle:
    """What start_tui hands back to the host process."""

    def __init__(self, dashboard: Dashboard):
        self._dashboard = dashboard

    def on_key_press(self, chord: str, handler: Handler) -> None:
        self._dashboard.keyboard.on_key_press(chord, handler)

    def set_current_screen(self, screen: Union[Screen, str]) -> bool:
        target = Screen(screen)
        return self._dashboard.events.post(lambda: self._dashboard.screens.set_current_screen(target),
                                           label=f"switch to {target.value}")

    def stop(self) -> bool:
        return self._dashboard.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._dashboard.wait(timeout)

    @property
    def stopped(self) -> bool:
        return self._dashboard.stopped


def start_tui(bot: Bot, config: Optional[Union[Config, Mapping[str, Any]]] = None,
              surface: Optional[OutputSurface] = None,
              link_opener: Callable[[str], bool] = open_link,
              read_keys: bool = True) -> DashboardHandle:
    """Validate config and start the dashboard. Exits the process on bad config."""
    try:
        dashboard = Dashboard(bot, config, surface=surface, link_opener=link_opener)
    except ConfigurationError as e:
        print(f"[error] {e}", file=sys.stderr)
        logger.error("%s", e)
        sys.exit(1)
    return dashboard.start(read_keys=read_keys)


def main():
    from botdash.demo import DemoBot

    config = parse_config()
    setup_logging(config.log_level, config.log_file or None)

    bot = DemoBot()
    bot.start()
    handle = start_tui(bot, config)
    try:
        while not handle.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        handle.stop()
        bot.stop()
        print("[botdash] Goodbye.")


if __name__ == "__main__":
    main()
