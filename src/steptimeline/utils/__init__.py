"""
Utils module - Logging and paths.

Contents:
- message.py: Log class for package logging
- paths.py: Platform-specific path utilities
"""
from .message import Log
from .paths import (
    get_user_config_dir,
    get_logs_dir,
    get_preferences_path,
)

__all__ = [
    'Log',
    'get_user_config_dir',
    'get_logs_dir',
    'get_preferences_path',
]
