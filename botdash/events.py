"""Single dispatch point for everything that touches UI state or the terminal.

The frame timer, the key reader and the mini-mode subscription all run on
their own threads but never render or mutate directly: they post callables
into an EventQueue, and one worker thread runs them in arrival order.
"""

import logging
import queue
import threading
from typing import Callable, Optional

from botdash.errors import HandlerError

logger = logging.getLogger(__name__)

_STOP = object()


def _log_handler_error(err: HandlerError) -> None:
    logger.error("%s", err, exc_info=err.cause)


class EventQueue:
    def __init__(self, on_error: Optional[Callable[[HandlerError], None]] = None):
        self._queue: "queue.Queue" = queue.Queue()
        self._on_error = on_error or _log_handler_error
        self._stopped = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def post(self, fn: Callable[[], None], label: str = "event") -> bool:
        """Queue fn for the worker. Returns False once the queue is stopped."""
        if self._stopped.is_set():
            return False
        self._queue.put((label, fn))
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def started(self) -> bool:
        return self._worker is not None

    def on_worker_thread(self) -> bool:
        return self._worker is not None and threading.current_thread() is self._worker

    def start(self) -> None:
        if self._worker is not None:
            return
        self._worker = threading.Thread(target=self._run, daemon=True, name="botdash-dispatch")
        self._worker.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        """Stop accepting events, drop whatever is still queued and end the worker."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        self._queue.put((None, _STOP))
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def drain(self) -> int:
        """Run every queued event on the calling thread. Returns how many ran.

        Used when no worker is started, e.g. from tests.
        """
        ran = 0
        while True:
            try:
                label, fn = self._queue.get_nowait()
            except queue.Empty:
                return ran
            if fn is _STOP or self._stopped.is_set():
                return ran
            self._execute(label, fn)
            ran += 1

    def _run(self) -> None:
        while True:
            label, fn = self._queue.get()
            if fn is _STOP or self._stopped.is_set():
                break
            self._execute(label, fn)
        logger.debug("dispatch worker exited")

    def _execute(self, label: str, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception as e:
            try:
                self._on_error(HandlerError(label, e))
            except Exception:
                logger.exception("error callback failed while reporting %s", label)


class FrameTimer:
    """Posts a tick into the EventQueue every `interval` seconds.

    A tick is not posted while the previous one is still waiting in the
    queue, so a slow render never builds up a backlog of stale frames.
    """

    def __init__(self, events: EventQueue, interval: float, on_tick: Callable[[], None]):
        self._events = events
        self._interval = interval
        self._on_tick = on_tick
        self._stop = threading.Event()
        self._tick_pending = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name="botdash-timer")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(self._interval * 2)

    def fire(self) -> bool:
        """Post one tick unless one is already queued."""
        if self._tick_pending.is_set():
            return False
        self._tick_pending.set()
        if not self._events.post(self._tick, label="render tick"):
            self._tick_pending.clear()
            return False
        return True

    def _tick(self) -> None:
        self._tick_pending.clear()
        if self._stop.is_set():
            return
        self._on_tick()

    def _run(self) -> None:
        # Event.wait bounds every sleep by one frame period and wakes early on stop
        while not self._stop.wait(self._interval):
            self.fire()
