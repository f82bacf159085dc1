import os

# Project root: parent of the botdash/ package directory. Only a checkout has
# a config.ini here; an installed copy looks in the working directory.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

CONFIG_FILENAME = "config.ini"
CONFIG_ENV = "BOTDASH_CONFIG"

DEFAULT_FPS = 10
MAX_FPS = 14
DEFAULT_ALLOW_CLEAR_CONSOLE = True
DEFAULT_WIDTH = 140
DEFAULT_LOG_LEVEL = "INFO"

# Trade history table: (header_label, justify, min_width)
TRADE_HISTORY_COLUMNS = [
    ("Time", "left", 8),
    ("Side", "left", 4),
    ("In", "right", 12),
    ("Out", "right", 12),
    ("In Amount", "right", 12),
    ("Out Amount", "right", 12),
    ("Expected", "right", 10),
    ("Profit", "right", 10),
]
CURSOR_X_MAX = len(TRADE_HISTORY_COLUMNS) - 1

LOG_LINES_SHOWN = 20

EXPLORER_URL = "https://solscan.io/address/{address}"

STATUS_STOP = "bot:stop"
STATUS_EXECUTE_RECENT_ROUTE = "execute:recentRoute"

PRICE_CHART_HEIGHT = 8
PROFIT_CHART_HEIGHT = 6

MINI_MODE_BANNER = [
    "",
    "Entering mini mode. Press 'm' to exit.",
    "",
    "WARNING: THIS IS EXPERIMENTAL FEATURE! WIP!",
    "",
]
MINI_MODE_EXIT = "Exiting mini mode."

HOTKEYS = "[m] Mini  [c] Config  [w] Wallet  [l] Logs  [^S] Explorer  [^E] Execute  [^C] Quit"

# Relative, so it lands in the working directory
LOG_PATH = "botdash.log"
