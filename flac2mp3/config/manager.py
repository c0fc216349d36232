"""Runtime settings management with validation."""
import os
import json
from typing import Dict, Any, List, Optional
from pathlib import Path
from dataclasses import dataclass, asdict
import logging

from ..errors import Flac2Mp3Error

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Paths and limits used by a single hook run."""
    ffmpeg_path: Path = Path("/usr/bin/ffmpeg")
    nice_path: str = "nice"

    # Lidarr's own configuration, read for the API port and key
    host_config_file: Path = Path("/config/config.xml")

    log_file: Path = Path("/config/logs/flac2mp3.txt")
    max_log_size: int = 1024000
    max_log_backups: int = 4

    # Rescan job polling
    rescan_retries: int = 15
    rescan_delay: float = 1.0
    api_timeout: Optional[float] = 30.0

    def validate(self) -> List[str]:
        """Validate settings."""
        errors = []

        if self.max_log_size <= 0:
            errors.append("Maximum log size must be a positive number of bytes")

        if self.max_log_backups < 1:
            errors.append("At least one rotated log file must be kept")

        if self.rescan_retries < 1:
            errors.append("Rescan retries must be at least 1")

        if self.rescan_delay < 0:
            errors.append("Rescan delay cannot be negative")

        if self.api_timeout is not None and self.api_timeout <= 0:
            errors.append("API timeout must be positive")

        return errors


class ConfigurationError(Flac2Mp3Error):
    """Configuration validation error."""
    exit_code = 20


class ConfigManager:
    """Loads settings from an optional JSON file and environment overrides."""

    env_mappings = {
        "FLAC2MP3_FFMPEG": "ffmpeg_path",
        "FLAC2MP3_NICE": "nice_path",
        "FLAC2MP3_CONFIG": "host_config_file",
        "FLAC2MP3_LOG": "log_file",
        "FLAC2MP3_MAX_LOG_SIZE": "max_log_size",
        "FLAC2MP3_MAX_LOG": "max_log_backups",
        "FLAC2MP3_RESCAN_RETRIES": "rescan_retries",
        "FLAC2MP3_RESCAN_DELAY": "rescan_delay",
        "FLAC2MP3_API_TIMEOUT": "api_timeout",
    }

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.settings = Settings()
        # Held until logging is configured, which needs these settings first
        self.warnings: List[str] = []
        self._load_configuration()
        self._apply_environment_overrides()
        self._validate_configuration()

    def _load_configuration(self):
        """Load settings from the file named by ``FLAC2MP3_SETTINGS``."""
        settings_file = self.environ.get("FLAC2MP3_SETTINGS")
        if settings_file:
            self._load_from_file(Path(settings_file))

    def _load_from_file(self, settings_file: Path):
        """Load settings from JSON file."""
        try:
            with open(settings_file, 'r') as f:
                data = json.load(f)

            for key, value in data.items():
                if hasattr(self.settings, key):
                    self._set_value(key, value)
                else:
                    self._warn(f"Ignoring unknown setting '{key}' in {settings_file}")

            logger.debug(f"Loaded settings from {settings_file}")

        except (OSError, ValueError, TypeError, AttributeError) as e:
            self._warn(f"Failed to load settings from {settings_file}: {e}")

    def _apply_environment_overrides(self):
        """Apply environment variable overrides."""
        for env_var, key in self.env_mappings.items():
            value = self.environ.get(env_var)
            if value is None:
                continue
            try:
                self._set_value(key, value)
                logger.debug(f"Applied environment override: {env_var}")
            except ValueError as e:
                self._warn(f"Invalid environment variable {env_var}={value}: {e}")

    def _warn(self, message: str):
        logger.debug(message)
        self.warnings.append(message)

    def _set_value(self, key, value):
        """Set a setting with type conversion."""
        if key in ["ffmpeg_path", "host_config_file", "log_file"]:
            setattr(self.settings, key, Path(value))
        elif key in ["max_log_size", "max_log_backups", "rescan_retries"]:
            setattr(self.settings, key, int(value))
        elif key == "rescan_delay":
            setattr(self.settings, key, float(value))
        elif key == "api_timeout":
            if value in (None, "", "none", "None"):
                setattr(self.settings, key, None)
            else:
                setattr(self.settings, key, float(value))
        else:
            setattr(self.settings, key, value)

    def _validate_configuration(self):
        """Validate settings and raise errors for critical issues."""
        errors = self.settings.validate()
        if errors:
            raise ConfigurationError("Configuration validation failed: " + "; ".join(errors))

    def to_dict(self) -> Dict[str, Any]:
        """Export settings as dictionary."""
        data = asdict(self.settings)
        return {key: str(value) if isinstance(value, Path) else value for key, value in data.items()}
