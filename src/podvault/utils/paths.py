"""Platform directory helpers for config, data and cache files."""

import os
import tempfile
from pathlib import Path

import platformdirs

APP_NAME = "podvault"


def get_config_dir() -> Path:
    """Get the configuration directory (XDG on Linux)."""
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_data_dir() -> Path:
    """Get the data directory holding the SQLite database."""
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_cache_dir() -> Path:
    """Get the user cache directory."""
    return Path(platformdirs.user_cache_dir(APP_NAME))


def get_ephemeral_cache_dir() -> Path:
    """Get the process-wide temp directory for ephemeral audio files."""
    return Path(tempfile.gettempdir()) / f"{APP_NAME}-cache"


def get_config_file() -> Path:
    """Get the path to config.yaml."""
    return get_config_dir() / "config.yaml"


def get_database_file() -> Path:
    """Get the default SQLite database path."""
    return get_data_dir() / f"{APP_NAME}.db"


def get_log_file() -> Path:
    """Get the default log file path."""
    return Path(platformdirs.user_log_dir(APP_NAME)) / f"{APP_NAME}.log"


def get_default_media_dir() -> Path:
    """Get the default root for persistent episode downloads."""
    music_dir = platformdirs.user_music_dir()
    if music_dir:
        return Path(music_dir) / "Podcasts"
    return Path(os.path.expanduser("~")) / "Music" / "Podcasts"
