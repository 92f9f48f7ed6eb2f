"""
Path management for steptimeline

Handles platform-specific user directories following standard conventions:
- macOS: ~/Library/Application Support/StepTimeline/
- Linux: ~/.config/steptimeline/ (config), ~/.local/state/steptimeline/logs (logs)
- Windows: %APPDATA%/StepTimeline/

The STEPTIMELINE_HOME environment variable overrides all of them.
"""
import os
import sys
from pathlib import Path


APP_NAME = "StepTimeline"
HOME_ENV_VAR = "STEPTIMELINE_HOME"


def _override_dir() -> Path | None:
    override = os.getenv(HOME_ENV_VAR)
    return Path(override) if override else None


def get_user_config_dir() -> Path:
    """
    Get platform-specific user config directory.

    Returns:
        Path where preferences files are stored (created if missing)
    """
    override = _override_dir()
    if override is not None:
        config_dir = override
    elif sys.platform == "darwin":
        config_dir = Path.home() / "Library" / "Application Support" / APP_NAME
    elif sys.platform == "win32":
        config_dir = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming")) / APP_NAME
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
        config_dir = base / APP_NAME.lower()

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_logs_dir() -> Path:
    """
    Get platform-specific log directory.

    Returns:
        Path where log files are written (created if missing)
    """
    override = _override_dir()
    if override is not None:
        logs_dir = override / "logs"
    elif sys.platform in ("darwin", "win32"):
        logs_dir = get_user_config_dir() / "logs"
    else:
        base = Path(os.getenv("XDG_STATE_HOME", Path.home() / ".local" / "state"))
        logs_dir = base / APP_NAME.lower() / "logs"

    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def get_preferences_path() -> Path:
    """Path of the JSON preferences file."""
    return get_user_config_dir() / "preferences.json"
