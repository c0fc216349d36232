"""Runtime settings for the conversion hook."""
from .manager import ConfigManager, ConfigurationError, Settings

__all__ = [
    'ConfigManager',
    'ConfigurationError',
    'Settings',
]
