import codecs
import logging
import os
import select
import sys
import threading
from typing import Callable, Dict, List, Optional, Tuple

from botdash.events import EventQueue

logger = logging.getLogger(__name__)

Handler = Callable[[], None]

_ARROWS = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}
_NAMED = {"\r": "enter", "\n": "enter", "\t": "tab", "\x7f": "backspace", " ": "space"}


def normalize_chord(chord: str) -> str:
    return chord.strip().lower().replace(" ", "")


def decode_keys(data: str) -> List[str]:
    """Turn raw terminal input into chord names like 'm', 'up' or 'ctrl+s'."""
    chords: List[str] = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == "\x1b":
            if i + 2 < len(data) and data[i + 1] in "[O":
                final = data[i + 2]
                if final in _ARROWS:
                    chords.append(_ARROWS[final])
                    i += 3
                    continue
                # Skip an unknown CSI sequence up to its final byte
                j = i + 2
                while j < len(data) and not ("@" <= data[j] <= "~"):
                    j += 1
                i = j + 1
                continue
            chords.append("escape")
            i += 1
            continue
        if ch in _NAMED:
            chords.append(_NAMED[ch])
        elif "\x01" <= ch <= "\x1a":
            chords.append("ctrl+" + chr(ord(ch) + 96))
        elif ch.isprintable():
            chords.append(ch.lower())
        i += 1
    return chords


def split_pending_escape(data: str) -> Tuple[str, str]:
    """Split off a trailing escape sequence whose final byte has not arrived.

    Returns (complete, pending). The reader prepends `pending` to its next
    read, so an arrow key split across two reads still decodes as one chord.
    """
    start = data.rfind("\x1b")
    if start == -1:
        return data, ""
    tail = data[start:]
    if len(tail) == 1:
        return data[:start], tail
    if tail[1] not in "[O":
        return data, ""
    if any("@" <= c <= "~" for c in tail[2:]):
        return data, ""
    return data[:start], tail


class KeyboardDispatcher:
    """Maps chords to handlers and runs them on the dispatch worker.

    Re-registering a chord replaces its handler (last registration wins).
    Handlers run one at a time, in arrival order, never re-entrantly.
    """

    def __init__(self, events: EventQueue):
        self._events = events
        self._bindings: Dict[str, Handler] = {}
        self._lock = threading.Lock()

    def on_key_press(self, chord: str, handler: Handler) -> None:
        chord = normalize_chord(chord)
        with self._lock:
            previous = self._bindings.get(chord)
            self._bindings[chord] = handler
        if previous is not None and previous is not handler:
            logger.debug("key %r rebound, previous handler replaced", chord)

    def bindings(self) -> Dict[str, Handler]:
        with self._lock:
            return dict(self._bindings)

    def feed(self, chord: str) -> bool:
        """Queue a key press. Safe to call from any thread."""
        chord = normalize_chord(chord)
        return self._events.post(lambda: self._dispatch(chord), label=f"key {chord!r}")

    def feed_raw(self, data: str) -> int:
        count = 0
        for chord in decode_keys(data):
            if self.feed(chord):
                count += 1
        return count

    def _dispatch(self, chord: str) -> None:
        with self._lock:
            handler = self._bindings.get(chord)
        if handler is None:
            logger.debug("unbound key %r ignored", chord)
            return
        handler()


class TerminalKeySource:
    """Background thread reading stdin one key at a time.

    Echo, line buffering, signal keys and XON/XOFF are switched off so that
    ctrl+c and ctrl+s arrive as chords instead of being eaten by the tty.
    """

    def __init__(self, on_input: Callable[[str], object], stream=None, poll_interval: float = 0.1):
        self._on_input = on_input
        self._stream = stream or sys.stdin
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._saved_attrs = None
        self._fd: Optional[int] = None

    def start(self) -> bool:
        try:
            fd = self._stream.fileno()
        except (AttributeError, ValueError, OSError):
            logger.warning("stdin has no file descriptor, keyboard input disabled")
            return False
        if not os.isatty(fd):
            logger.warning("stdin is not a terminal, keyboard input disabled")
            return False
        self._fd = fd
        self._enter_key_mode()
        self._thread = threading.Thread(target=self._run, daemon=True, name="botdash-keys")
        self._thread.start()
        return True

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(self._poll_interval * 5)
        self._restore()

    def _enter_key_mode(self) -> None:
        import termios

        self._saved_attrs = termios.tcgetattr(self._fd)
        attrs = termios.tcgetattr(self._fd)
        attrs[0] &= ~(termios.IXON | termios.ICRNL)
        attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self._fd, termios.TCSADRAIN, attrs)

    def _restore(self) -> None:
        if self._saved_attrs is None:
            return
        import termios

        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        except termios.error:
            logger.warning("could not restore terminal settings")
        self._saved_attrs = None

    def _run(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        pending = ""
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([self._fd], [], [], self._poll_interval)
                if not ready:
                    # Nothing followed within a poll period: a lone escape key
                    if pending:
                        self._on_input(pending)
                        pending = ""
                    continue
                data = os.read(self._fd, 64)
            except OSError:
                logger.exception("keyboard read failed, input disabled")
                return
            if not data:
                if pending:
                    self._on_input(pending)
                return
            text, pending = split_pending_escape(pending + decoder.decode(data))
            if text:
                self._on_input(text)
