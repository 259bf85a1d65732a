"""
Tests for settings loading from config files and environment.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.userapi.config import (
    SecuritySettings,
    _set_env_from_config,
    get_settings,
    load_config_file,
    reload_settings,
)


class TestConfigFile:
    """Test YAML config loading."""

    def test_load_config_file(self, tmp_path: Path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("server:\n  port: 9090\nstore:\n  seed_demo_user: false\n")

        config = load_config_file(str(config_path))

        assert config == {"server": {"port": 9090}, "store": {"seed_demo_user": False}}

    def test_missing_config_file(self, tmp_path: Path):
        assert load_config_file(str(tmp_path / "missing.yaml")) == {}

    def test_empty_config_file(self, tmp_path: Path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")

        assert load_config_file(str(config_path)) == {}

    def test_path_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        config_path = tmp_path / "userapi.yaml"
        config_path.write_text("server:\n  port: 9191\n")
        monkeypatch.setenv("USERAPI_CONFIG_FILE", str(config_path))

        assert load_config_file() == {"server": {"port": 9191}}

    def test_default_path_is_working_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("USERAPI_CONFIG_FILE", raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config_file() == {}

        (tmp_path / "config.yaml").write_text("store:\n  seed_demo_user: true\n")
        assert load_config_file() == {"store": {"seed_demo_user": True}}


class TestEnvFromConfig:
    """Test config values become environment defaults."""

    def test_sets_missing_env_vars(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("USERAPI_PORT", raising=False)
        monkeypatch.delenv("USERAPI_SECURITY_API_KEY_ENV", raising=False)

        with patch.dict(os.environ):
            _set_env_from_config({
                "server": {"port": 9090},
                "security": {"api_key_env": "OTHER_KEY"},
            })
            assert os.environ["USERAPI_PORT"] == "9090"
            assert os.environ["USERAPI_SECURITY_API_KEY_ENV"] == "OTHER_KEY"

    def test_env_vars_take_precedence(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("USERAPI_PORT", "7070")

        with patch.dict(os.environ):
            _set_env_from_config({"server": {"port": 9090}})
            assert os.environ["USERAPI_PORT"] == "7070"

    def test_settings_built_from_config(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        for var in ("USERAPI_PORT", "USERAPI_LOG_FILE", "USERAPI_STORE_SEED_DEMO_USER", "USERAPI_CORS_ORIGINS"):
            monkeypatch.delenv(var, raising=False)

        config = {
            "server": {
                "port": 9090,
                "log_file": str(tmp_path / "requests.log"),
                "cors_origins": ["http://localhost:3000"],
            },
            "store": {"seed_demo_user": False},
        }

        with patch.dict(os.environ), patch('src.userapi.config.load_config_file', return_value=config):
            settings = reload_settings()

            assert settings.port == 9090
            assert settings.log_file == tmp_path / "requests.log"
            assert settings.cors_origins == ["http://localhost:3000"]
            assert settings.store.seed_demo_user is False

        get_settings.cache_clear()


class TestSecuritySettings:
    """Test security defaults and normalization."""

    def test_defaults(self):
        settings = SecuritySettings()

        assert settings.api_key_env == "MYAPI_API_KEY"
        assert settings.api_key_header == "X-API-Key"
        assert settings.api_key_query == "api_key"
        assert settings.protected_prefix == "/users"

    @pytest.mark.parametrize("prefix", ["users", "/users/", " users/ "])
    def test_prefix_normalized(self, prefix: str):
        assert SecuritySettings(protected_prefix=prefix).protected_prefix == "/users"
