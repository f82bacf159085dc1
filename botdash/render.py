import logging
from typing import Callable, Dict, Optional

from botdash.bot import BusinessSnapshot, SnapshotSource
from botdash.composer import compose_frame, compose_mini_line
from botdash.config import check_fps
from botdash.constants import DEFAULT_FPS, DEFAULT_WIDTH
from botdash.errors import ConfigurationError
from botdash.events import EventQueue, FrameTimer
from botdash.state import Screen, UIState, UIStateStore
from botdash.surface import OutputSurface

logger = logging.getLogger(__name__)

FrameComposer = Callable[[BusinessSnapshot, UIState, int], str]
LineComposer = Callable[[BusinessSnapshot], str]


class RenderStrategy:
    """How frames reach the surface while a given screen is active."""

    def __init__(self, loop: "RenderLoop"):
        self._loop = loop

    def on_tick(self) -> bool:
        raise NotImplementedError

    def render(self) -> bool:
        raise NotImplementedError

    def reset(self) -> None:
        pass


class MainRenderStrategy(RenderStrategy):
    """Full-frame rendering on every tick, optionally clearing first."""

    def on_tick(self) -> bool:
        return self.render()

    def render(self) -> bool:
        loop = self._loop
        snapshot = loop.source.get_state()
        ui_state = loop.store.get_state()
        frame = loop.composer(snapshot, ui_state, loop.width)
        if ui_state.allow_clear_console:
            loop.surface.clear()
        loop.surface.write(frame)
        return True


class MiniRenderStrategy(RenderStrategy):
    """Condensed line-per-update rendering driven by snapshot changes.

    Ticks do nothing here: while mini mode is active only the subscription
    decides when to write.
    """

    def __init__(self, loop: "RenderLoop"):
        super().__init__(loop)
        self._last_line: Optional[str] = None

    def on_tick(self) -> bool:
        return False

    def render(self) -> bool:
        line = self._loop.line_composer(self._loop.source.get_state())
        if line == self._last_line:
            return False
        self._loop.surface.write(line)
        self._last_line = line
        return True

    def reset(self) -> None:
        self._last_line = None


class RenderLoop:
    """Fixed-rate renderer. Every render runs on the EventQueue worker."""

    def __init__(self, source: SnapshotSource, store: UIStateStore, surface: OutputSurface,
                 events: EventQueue, fps: float = DEFAULT_FPS, width: int = DEFAULT_WIDTH,
                 composer: FrameComposer = compose_frame,
                 line_composer: LineComposer = compose_mini_line):
        self.interval = check_fps(fps)
        self.fps = fps
        self.source = source
        self.store = store
        self.surface = surface
        self.events = events
        self.width = width
        self.composer = composer
        self.line_composer = line_composer
        self.frames_written = 0
        self._stopped = False
        self._timer = FrameTimer(events, self.interval, self.tick)

        main = MainRenderStrategy(self)
        self.mini = MiniRenderStrategy(self)
        self._strategies: Dict[Screen, RenderStrategy] = {
            Screen.MAIN: main,
            Screen.CONFIG: main,
            Screen.WALLET: main,
            Screen.LOGS: main,
            Screen.MINI: self.mini,
        }
        missing = set(Screen) - set(self._strategies)
        if missing:
            raise ConfigurationError(f"no render strategy for {sorted(s.value for s in missing)}")

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def timer(self) -> FrameTimer:
        return self._timer

    def strategy_for(self, screen: Screen) -> RenderStrategy:
        return self._strategies[screen]

    def start(self) -> None:
        logger.info("render loop started at %s fps", self.fps)
        self._timer.start()

    def stop(self) -> None:
        self._stopped = True
        self._timer.stop()

    def tick(self) -> None:
        if self._stopped:
            return
        screen = self.store.get_state().current_screen
        self._guarded(self.strategy_for(screen).on_tick)

    def render_now(self) -> None:
        """Render immediately through the active screen's strategy.

        Key handlers and screen transitions call this on the dispatch worker.
        A call from any other thread while the worker runs is posted to the
        queue instead, so frames are only ever written by the worker.
        """
        if self._stopped:
            return
        if self.events.started and not self.events.on_worker_thread():
            self.request_render()
            return
        screen = self.store.get_state().current_screen
        self._guarded(self.strategy_for(screen).render)

    def request_render(self) -> bool:
        return self.events.post(self.render_now, label="forced render")

    def _guarded(self, fn: Callable[[], Optional[bool]]) -> None:
        try:
            wrote = fn()
        except OSError:
            logger.exception("writing frame failed")
            return
        if wrote:
            self.frames_written += 1
