"""Tests for environment-driven Settings.

Tests cover:
- Defaults with an empty environment
- Variable parsing (flags, PORT, BOT_INTERVAL fallback)
- .env loading without overriding existing variables
- Webhook URL masking
"""

import logging
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from error_relay.core.config import (
    DEFAULT_BOT_INTERVAL,
    DEFAULT_ENVIRONMENT,
    DEFAULT_PORT,
    Settings,
    load_env_file,
    mask_webhook_url,
)
from error_relay.core.exceptions import ConfigError


class TestSettingsDefaults:
    def test_empty_environment(self) -> None:
        settings = Settings.from_env({})

        assert settings.discord_webhook_url is None
        assert settings.elk_url is None
        assert settings.elk_username is None
        assert settings.elk_password is None
        assert settings.environment == DEFAULT_ENVIRONMENT
        assert settings.bot_interval == DEFAULT_BOT_INTERVAL
        assert settings.bot_enabled is True
        assert settings.port == DEFAULT_PORT
        assert settings.include_stack_trace is True
        assert settings.async_delivery is True

    def test_settings_frozen(self) -> None:
        settings = Settings.from_env({})
        with pytest.raises(ValidationError):
            settings.port = 9000  # type: ignore[misc]


class TestSettingsFromEnv:
    """Test parsing of individual variables."""

    def test_full_environment(self) -> None:
        settings = Settings.from_env(
            {
                "DISCORD_WEBHOOK_URL": "https://discord.example/api/webhooks/1/abc",
                "ELK_URL": "https://elk.example/logs",
                "ELK_USERNAME": "elastic",
                "ELK_PASSWORD": "secret",
                "ENVIRONMENT": "production",
                "BOT_INTERVAL": "1m30s",
                "BOT_ENABLED": "false",
                "PORT": "9090",
                "INCLUDE_STACK_TRACE": "no",
                "ASYNC_DELIVERY": "0",
            }
        )

        assert settings.discord_webhook_url == "https://discord.example/api/webhooks/1/abc"
        assert settings.elk_url == "https://elk.example/logs"
        assert settings.elk_username == "elastic"
        assert settings.elk_password == "secret"
        assert settings.environment == "production"
        assert settings.bot_interval == 90.0
        assert settings.bot_enabled is False
        assert settings.port == 9090
        assert settings.include_stack_trace is False
        assert settings.async_delivery is False

    def test_blank_values_treated_as_unset(self) -> None:
        settings = Settings.from_env({"DISCORD_WEBHOOK_URL": "  ", "ENVIRONMENT": ""})
        assert settings.discord_webhook_url is None
        assert settings.environment == DEFAULT_ENVIRONMENT

    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", "yes", "on"])
    def test_true_flags(self, raw: str) -> None:
        assert Settings.from_env({"BOT_ENABLED": raw}).bot_enabled is True

    def test_invalid_flag_raises(self) -> None:
        with pytest.raises(ConfigError, match="BOT_ENABLED"):
            Settings.from_env({"BOT_ENABLED": "maybe"})

    def test_invalid_port_raises(self) -> None:
        with pytest.raises(ConfigError, match="PORT"):
            Settings.from_env({"PORT": "http"})

    def test_out_of_range_port_raises(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            Settings.from_env({"PORT": "70000"})

    @pytest.mark.parametrize("raw", ["soon", "30", "-5s", "0"])
    def test_bad_bot_interval_falls_back(self, raw: str, caplog: pytest.LogCaptureFixture) -> None:
        """Unparseable or non-positive intervals use the default with a warning."""
        with caplog.at_level(logging.WARNING, logger="error_relay.core.config"):
            settings = Settings.from_env({"BOT_INTERVAL": raw})

        assert settings.bot_interval == DEFAULT_BOT_INTERVAL
        assert "BOT_INTERVAL" in caplog.text

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "staging")
        assert Settings.from_env().environment == "staging"


class TestLoadEnvFile:
    """Test .env loading via python-dotenv."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_env_file(tmp_path) is False

    def test_env_directory_ignored(self, tmp_path: Path) -> None:
        (tmp_path / ".env").mkdir()
        assert load_env_file(project_path=tmp_path) is False

    def test_loads_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ERROR_RELAY_TEST_VAR", raising=False)
        (tmp_path / ".env").write_text("ERROR_RELAY_TEST_VAR=from-file\n")

        assert load_env_file(tmp_path) is True
        assert os.environ["ERROR_RELAY_TEST_VAR"] == "from-file"
        os.environ.pop("ERROR_RELAY_TEST_VAR")

    def test_loads_explicit_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ERROR_RELAY_TEST_VAR", raising=False)
        env_file = tmp_path / "custom.env"
        env_file.write_text("ERROR_RELAY_TEST_VAR=custom\n")

        assert load_env_file(env_file) is True
        assert os.environ["ERROR_RELAY_TEST_VAR"] == "custom"
        os.environ.pop("ERROR_RELAY_TEST_VAR")

    def test_does_not_override_existing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ERROR_RELAY_TEST_VAR", "from-shell")
        (tmp_path / ".env").write_text("ERROR_RELAY_TEST_VAR=from-file\n")

        load_env_file(tmp_path)
        assert os.environ["ERROR_RELAY_TEST_VAR"] == "from-shell"


class TestMaskWebhookUrl:
    def test_unset(self) -> None:
        assert mask_webhook_url(None) == "not configured"
        assert mask_webhook_url("") == "not configured"

    def test_short_url_unchanged(self) -> None:
        assert mask_webhook_url("https://chat.example/hook") == "https://chat.example/hook"

    def test_long_url_truncated(self) -> None:
        url = "https://discord.com/api/webhooks/123456789012345678/" + "x" * 60
        masked = mask_webhook_url(url)
        assert masked == url[:50] + "..."
