"""Tests for runtime settings management."""
import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from flac2mp3.config.manager import ConfigManager, ConfigurationError, Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.ffmpeg_path == Path("/usr/bin/ffmpeg")
        assert settings.host_config_file == Path("/config/config.xml")
        assert settings.log_file == Path("/config/logs/flac2mp3.txt")
        assert settings.max_log_size == 1024000
        assert settings.max_log_backups == 4
        assert settings.rescan_retries == 15
        assert settings.rescan_delay == 1.0
        assert settings.validate() == []

    def test_validation_errors(self):
        settings = Settings(max_log_size=0, rescan_retries=0, rescan_delay=-1)
        assert len(settings.validate()) == 3


class TestConfigManager:
    def test_no_overrides(self):
        manager = ConfigManager(environ={})
        assert manager.settings == Settings()

    def test_environment_overrides(self):
        manager = ConfigManager(environ={
            "FLAC2MP3_FFMPEG": "/opt/ffmpeg",
            "FLAC2MP3_CONFIG": "/tmp/config.xml",
            "FLAC2MP3_MAX_LOG": "2",
            "FLAC2MP3_RESCAN_DELAY": "0.5",
            "FLAC2MP3_API_TIMEOUT": "none",
        })

        assert manager.settings.ffmpeg_path == Path("/opt/ffmpeg")
        assert manager.settings.host_config_file == Path("/tmp/config.xml")
        assert manager.settings.max_log_backups == 2
        assert manager.settings.rescan_delay == 0.5
        assert manager.settings.api_timeout is None

    def test_invalid_environment_variables(self):
        # Should not raise an exception, just log a warning
        manager = ConfigManager(environ={"FLAC2MP3_RESCAN_RETRIES": "many"})
        assert manager.settings.rescan_retries == 15
        assert manager.warnings == [
            "Invalid environment variable FLAC2MP3_RESCAN_RETRIES=many: "
            "invalid literal for int() with base 10: 'many'"
        ]

    def test_load_from_settings_file(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({"log_file": str(tmp_path / "x.txt"), "rescan_retries": 3}))

        manager = ConfigManager(environ={
            "FLAC2MP3_SETTINGS": str(settings_file),
            "FLAC2MP3_RESCAN_RETRIES": "5",
        })

        assert manager.settings.log_file == tmp_path / "x.txt"
        # environment wins over the file
        assert manager.settings.rescan_retries == 5

    def test_missing_settings_file(self, tmp_path):
        manager = ConfigManager(environ={"FLAC2MP3_SETTINGS": str(tmp_path / "missing.json")})
        assert manager.settings == Settings()

    def test_unreadable_settings_file(self, tmp_path):
        manager = ConfigManager(environ={"FLAC2MP3_SETTINGS": str(tmp_path)})
        assert manager.settings == Settings()
        assert len(manager.warnings) == 1
        assert "Failed to load settings" in manager.warnings[0]

    def test_validation_failure(self):
        with pytest.raises(ConfigurationError) as exc:
            ConfigManager(environ={"FLAC2MP3_MAX_LOG_SIZE": "0"})
        assert exc.value.exit_code == 20

    def test_to_dict(self):
        data = ConfigManager(environ={}).to_dict()
        assert data["ffmpeg_path"] == "/usr/bin/ffmpeg"
        assert data["rescan_retries"] == 15
