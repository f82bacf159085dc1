import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    Frames own stdout, so console logs go to stderr through rich. When a
    log file is given it replaces the console handler entirely.
    """
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    else:
        handler = RichHandler(console=Console(file=sys.stderr), show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
