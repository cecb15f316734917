"""
Unit Tests: Settings

Tests for layering environment variables over the TOML defaults.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import Settings, build_settings, get_settings, reload_settings
from utils.config import DEFAULT_CONFIG_FILE, get_fallback_config, load_config


class TestBuildSettings:

    @pytest.mark.unit
    def test_schema_defaults(self):
        settings = build_settings(environ={}, toml_config={})

        assert settings.server.port == 3000
        assert settings.server.host == "127.0.0.1"
        assert settings.storage.max_upload_bytes == 10 * 1024 * 1024
        assert settings.storage.upload_dir.is_absolute()
        assert settings.storage.upload_dir.name == "uploads"
        assert settings.environment == "development"

    @pytest.mark.unit
    def test_toml_values_applied(self):
        toml_config = {
            "app": {"environment": "production"},
            "server": {"port": 8080},
            "storage": {"max_upload_bytes": 2048},
        }

        settings = build_settings(environ={}, toml_config=toml_config)

        assert settings.environment == "production"
        assert settings.server.port == 8080
        assert settings.storage.max_upload_bytes == 2048

    @pytest.mark.unit
    def test_environment_overrides_toml(self, tmp_path: Path):
        environ = {
            "PORT": "9000",
            "HOST": "0.0.0.0",
            "UPLOAD_DIR": str(tmp_path / "files"),
            "MAX_UPLOAD_BYTES": "1234",
            "APP_ENVIRONMENT": "test",
            "LOG_LEVEL": "DEBUG",
            "LOG_FORMAT": "json",
            "METRICS_ENABLED": "false",
        }
        toml_config = {"server": {"port": 8080}, "storage": {"max_upload_bytes": 2048}}

        settings = build_settings(environ=environ, toml_config=toml_config)

        assert settings.server.port == 9000
        assert settings.server.host == "0.0.0.0"
        assert settings.storage.upload_dir == (tmp_path / "files").resolve()
        assert settings.storage.max_upload_bytes == 1234
        assert settings.environment == "test"
        assert settings.monitoring.log_level == "DEBUG"
        assert settings.monitoring.log_format == "json"
        assert settings.monitoring.metrics_enabled is False

    @pytest.mark.unit
    def test_empty_environment_values_ignored(self):
        settings = build_settings(environ={"PORT": ""}, toml_config={"server": {"port": 8080}})
        assert settings.server.port == 8080

    @pytest.mark.unit
    def test_cors_origins_from_comma_list(self):
        environ = {"CORS_ALLOWED_ORIGINS": "http://a.example, http://b.example,,"}

        settings = build_settings(environ=environ, toml_config={})

        assert settings.security.allowed_origins == ["http://a.example", "http://b.example"]

    @pytest.mark.unit
    @pytest.mark.parametrize("environ", [
        {"PORT": "0"},
        {"PORT": "70000"},
        {"PORT": "abc"},
        {"MAX_UPLOAD_BYTES": "0"},
        {"APP_ENVIRONMENT": "staging"},
        {"LOG_FORMAT": "xml"},
    ])
    def test_invalid_values_rejected(self, environ):
        with pytest.raises(ValidationError):
            build_settings(environ=environ, toml_config={})


class TestSettingsCache:

    @pytest.mark.unit
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    @pytest.mark.unit
    def test_reload_settings_rebuilds(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("PORT", "4321")

        reloaded = reload_settings()

        assert reloaded is not first
        assert reloaded.server.port == 4321


class TestTomlLoader:

    @pytest.mark.unit
    def test_defaults_file_loads(self):
        config = load_config(DEFAULT_CONFIG_FILE)

        assert config["server"]["port"] == 3000
        assert config["storage"]["max_upload_bytes"] == 10485760

    @pytest.mark.unit
    def test_missing_file_uses_fallback(self, tmp_path: Path):
        assert load_config(tmp_path / "missing.toml") == get_fallback_config()

    @pytest.mark.unit
    def test_malformed_file_uses_fallback(self, tmp_path: Path):
        broken = tmp_path / "broken.toml"
        broken.write_text("[server\nport = ")

        assert load_config(broken) == get_fallback_config()

    @pytest.mark.unit
    def test_defaults_file_builds_valid_settings(self):
        settings = build_settings(environ={}, toml_config=load_config(DEFAULT_CONFIG_FILE))
        assert isinstance(settings, Settings)
        assert settings.security.security_headers_enabled is True
