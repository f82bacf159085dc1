import logging
import webbrowser

from botdash.constants import EXPLORER_URL

logger = logging.getLogger(__name__)


def explorer_url(address: str) -> str:
    return EXPLORER_URL.format(address=address)


def open_link(url: str) -> bool:
    """Open url in the user's default handler. Failures are logged, never raised."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("could not open %s: %s", url, e)
        return False
    if not opened:
        logger.warning("no browser available to open %s", url)
    return bool(opened)
