# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests settings loading, validation, and credential handling

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError

from topway.config import (
    DEFAULT_REFRESH_INTERVAL,
    RAILWAY_API_URL,
    REFRESH_INTERVALS,
    Configuration,
    load_settings,
)


@pytest.mark.unit
class TestConfigurationDefaults:
    """Tests for default configuration values."""

    def test_defaults(self, clean_env):
        """Test default configuration."""
        config = Configuration()

        assert config.token == ""
        assert config.workspace_id == ""
        assert config.auto_refresh_enabled is False
        assert config.auto_refresh_interval == DEFAULT_REFRESH_INTERVAL == 30
        assert config.api_url == RAILWAY_API_URL
        assert config.log_level == "INFO"
        assert config.json_logs is False
        assert config.audit_log is None

    def test_not_configured_by_default(self, clean_env):
        """Test that an empty configuration is not usable."""
        assert Configuration().is_configured is False

    def test_refresh_interval_choices(self):
        """Test the intervals offered by the settings picker."""
        assert list(REFRESH_INTERVALS) == [15, 30, 60, 300]


@pytest.mark.unit
class TestCredentials:
    """Tests for token and workspace id handling."""

    def test_configured_with_both(self, clean_env):
        """Test is_configured requires token and workspace id."""
        config = Configuration(api_token=SecretStr("tok"), workspace_id="ws")
        assert config.is_configured is True

    def test_token_only_is_not_configured(self, clean_env):
        """Test that a token without workspace id is incomplete."""
        config = Configuration(api_token=SecretStr("tok"))
        assert config.is_configured is False

    def test_workspace_only_is_not_configured(self, clean_env):
        """Test that a workspace id without token is incomplete."""
        config = Configuration(workspace_id="ws")
        assert config.is_configured is False

    def test_token_hidden_in_repr(self, clean_env):
        """Test that the token never appears in repr."""
        config = Configuration(api_token=SecretStr("super-secret"), workspace_id="ws")
        assert "super-secret" not in repr(config)
        assert config.token == "super-secret"

    def test_workspace_id_is_stripped(self, clean_env):
        """Test that pasted workspace ids lose surrounding whitespace."""
        config = Configuration(workspace_id="  ws-1 \n")
        assert config.workspace_id == "ws-1"

    def test_railway_env_names(self, clean_env):
        """Test Railway's own variable names are read."""
        with patch.dict(os.environ, {"RAILWAY_TOKEN": "env-tok", "RAILWAY_WORKSPACE_ID": "env-ws"}):
            config = Configuration()
        assert config.token == "env-tok"
        assert config.workspace_id == "env-ws"

    def test_prefixed_env_names(self, clean_env):
        """Test TOPWAY_-prefixed credential variables are read."""
        with patch.dict(os.environ, {"TOPWAY_API_TOKEN": "t", "TOPWAY_WORKSPACE_ID": "w"}):
            config = Configuration()
        assert config.is_configured is True


@pytest.mark.unit
class TestRefreshInterval:
    """Tests for auto-refresh interval validation."""

    @pytest.mark.parametrize("seconds", [15, 30, 60, 300])
    def test_allowed_intervals(self, clean_env, seconds):
        """Test each picker interval is accepted."""
        config = Configuration(auto_refresh_interval=seconds)
        assert config.auto_refresh_interval == seconds

    def test_rejects_other_interval(self, clean_env):
        """Test arbitrary intervals are rejected."""
        with pytest.raises(ValidationError, match="auto_refresh_interval"):
            Configuration(auto_refresh_interval=45)

    def test_assignment_is_validated(self, clean_env):
        """Test that setters cannot store an invalid interval."""
        config = Configuration()
        with pytest.raises(ValidationError):
            config.auto_refresh_interval = 7
        assert config.auto_refresh_interval == 30

    def test_interval_from_env(self, clean_env):
        """Test the interval is read from the environment."""
        with patch.dict(
            os.environ,
            {"TOPWAY_AUTO_REFRESH_INTERVAL": "60", "TOPWAY_AUTO_REFRESH_ENABLED": "true"},
        ):
            config = Configuration()
        assert config.auto_refresh_interval == 60
        assert config.auto_refresh_enabled is True

    def test_interval_label(self, clean_env):
        """Test human label for the interval."""
        assert Configuration(auto_refresh_interval=300).refresh_interval_label == "5 minutes"


@pytest.mark.unit
class TestAmbientSettings:
    """Tests for logging and audit settings."""

    def test_log_level_is_uppercased(self, clean_env):
        """Test lowercase log levels are accepted."""
        assert Configuration(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self, clean_env):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            Configuration(log_level="LOUD")

    def test_audit_log_path(self, clean_env, tmp_path: Path):
        """Test audit log path from environment."""
        target = tmp_path / "audit.jsonl"
        with patch.dict(os.environ, {"TOPWAY_AUDIT_LOG": str(target)}):
            config = Configuration()
        assert config.audit_log == target


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings."""

    def test_reads_env_file(self, clean_env, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Test that TOPWAY_ENV_FILE points at an extra .env source."""
        env_file = tmp_path / ".env"
        env_file.write_text("RAILWAY_TOKEN=file-token\nRAILWAY_WORKSPACE_ID=file-ws\n")
        monkeypatch.setenv("TOPWAY_ENV_FILE", str(env_file))

        config = load_settings()

        assert config.token == "file-token"
        assert config.workspace_id == "file-ws"

    def test_without_env_file(self, clean_env):
        """Test loading with no env file configured."""
        config = load_settings()
        assert config.is_configured is False
