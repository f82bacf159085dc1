import configparser
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from botdash.constants import (
    PROJECT_ROOT, CONFIG_FILENAME, CONFIG_ENV, LOG_PATH, DEFAULT_FPS, MAX_FPS,
    DEFAULT_ALLOW_CLEAR_CONSOLE, DEFAULT_WIDTH, DEFAULT_LOG_LEVEL,
)
from botdash.errors import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Config:
    allow_clear_console: bool = DEFAULT_ALLOW_CLEAR_CONSOLE
    fps: int = DEFAULT_FPS
    width: int = DEFAULT_WIDTH
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = LOG_PATH


def parse_bool(value: str, default: bool) -> bool:
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    print(f"[warning] Invalid boolean '{value}', using {default}")
    return default


def parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        print(f"[warning] Invalid number '{value}', using {default}")
        return default


def find_config(path: Optional[str] = None) -> str:
    """Pick the config.ini to read.

    Order: an explicit path, $BOTDASH_CONFIG, the working directory, then the
    root of a source checkout. Returns the working-directory path when none
    of them exists.
    """
    if path:
        return os.path.expanduser(path)
    env_path = os.environ.get(CONFIG_ENV, "").strip()
    if env_path:
        return os.path.expanduser(env_path)
    local = os.path.join(os.getcwd(), CONFIG_FILENAME)
    checkout = os.path.join(PROJECT_ROOT, CONFIG_FILENAME)
    if not os.path.exists(local) and os.path.exists(checkout):
        return checkout
    return local


def parse_config(path: Optional[str] = None) -> Config:
    """Read config.ini and return a Config object.

    The fps value is taken as written; range checks happen in validate_config
    so that an out-of-range value stays a fatal error instead of a fallback.
    """
    cfg_obj = Config()
    path = find_config(path)
    if not os.path.exists(path):
        print(f"[notice] {path} not found, using defaults")
        return cfg_obj

    cfg = configparser.RawConfigParser()
    cfg.read(path)
    sect = cfg["dashboard"] if "dashboard" in cfg else {}
    if "allow_clear_console" in sect:
        cfg_obj.allow_clear_console = parse_bool(sect["allow_clear_console"], DEFAULT_ALLOW_CLEAR_CONSOLE)
    if "fps" in sect:
        cfg_obj.fps = parse_int(sect["fps"], DEFAULT_FPS)
    if "width" in sect:
        cfg_obj.width = parse_int(sect["width"], DEFAULT_WIDTH)
    cfg_obj.log_level = sect.get("log_level", DEFAULT_LOG_LEVEL).strip().upper()
    cfg_obj.log_file = os.path.expanduser(sect.get("log_file", LOG_PATH).strip())
    return cfg_obj


def coerce_config(config: Optional[Union[Config, Mapping[str, Any]]]) -> Config:
    """Accept a Config, a plain options dict (camelCase or snake_case keys) or None."""
    if config is None:
        return Config()
    if isinstance(config, Config):
        return config
    cfg_obj = Config()
    if "allowClearConsole" in config:
        cfg_obj.allow_clear_console = bool(config["allowClearConsole"])
    if "allow_clear_console" in config:
        cfg_obj.allow_clear_console = bool(config["allow_clear_console"])
    if "fps" in config:
        cfg_obj.fps = config["fps"]
    if "width" in config:
        cfg_obj.width = config["width"]
    return cfg_obj


def check_fps(fps) -> float:
    """Return the frame period in seconds, or raise ConfigurationError."""
    if isinstance(fps, bool) or not isinstance(fps, (int, float)):
        raise ConfigurationError(f"FPS must be a number, got {fps!r}.")
    if fps > MAX_FPS:
        raise ConfigurationError(
            f"FPS cannot be higher than {MAX_FPS}, this is useless and can cause performance issues."
        )
    if fps <= 0:
        raise ConfigurationError(f"FPS must be positive, got {fps}.")
    return 1.0 / fps


def validate_config(config: Config) -> Config:
    check_fps(config.fps)
    if isinstance(config.width, bool) or not isinstance(config.width, int):
        raise ConfigurationError(f"Width must be a whole number of columns, got {config.width!r}.")
    if config.width < 40:
        raise ConfigurationError(f"Width must be at least 40 columns, got {config.width}.")
    return config
