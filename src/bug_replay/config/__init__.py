"""
Configuration module - Settings for the browser, replay, storage and logging.

Values come from defaults, a YAML file, BUG_REPLAY__ environment variables
(nested with ``__``) and CLI overrides, in increasing priority:

    BUG_REPLAY__REPLAY__PACING=relative
    BUG_REPLAY__STORAGE__BACKEND=file
    BUG_REPLAY__STORAGE__DATA_DIR=~/.bug-replay
"""

from typing import Optional

from bug_replay.config.settings import (
    Settings,
    BrowserSettings,
    ReplaySettings,
    StorageSettings,
    LoggingSettings,
)
from bug_replay.config.loader import ConfigLoader, load_config

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "BrowserSettings",
    "ReplaySettings",
    "StorageSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_config",
    "get_settings",
    "reset_settings",
]
