import threading
from typing import Optional, Protocol

from rich.console import Console


class OutputSurface(Protocol):
    def clear(self) -> None: ...

    def write(self, text: str) -> None: ...


class TerminalSurface:
    """Writes pre-rendered frames straight to the console's file.

    Frames are already ANSI text from the composer, so they bypass rich's
    own markup and highlighting.
    """

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
        self._lock = threading.Lock()

    @property
    def console(self) -> Console:
        return self._console

    def clear(self) -> None:
        with self._lock:
            self._console.clear()

    def write(self, text: str) -> None:
        if not text.endswith("\n"):
            text += "\n"
        with self._lock:
            self._console.file.write(text)
            self._console.file.flush()
