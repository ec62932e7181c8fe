# ABOUTME: Configuration management for topway
# ABOUTME: Handles the API token, workspace id, auto-refresh and logging settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module holds every user-facing setting:

1. CREDENTIALS: the Railway API token and the workspace id. Both are required
   before any remote call is allowed.
2. AUTO-REFRESH: whether the project list is polled, and how often.
3. AMBIENT: endpoint override, log level, log format and audit log path.

Values are read from environment variables (and an optional .env file) and
validated on load and on every assignment.

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

Credentials (Railway's own variable names are accepted):
    RAILWAY_TOKEN / TOPWAY_API_TOKEN               -> API token
    RAILWAY_WORKSPACE_ID / TOPWAY_WORKSPACE_ID     -> Workspace id

Everything else uses the TOPWAY_ prefix:
    TOPWAY_AUTO_REFRESH_ENABLED   -> Poll the project list (default: false)
    TOPWAY_AUTO_REFRESH_INTERVAL  -> Seconds between polls: 15, 30, 60 or 300
    TOPWAY_API_URL                -> GraphQL endpoint override
    TOPWAY_LOG_LEVEL              -> DEBUG, INFO, WARNING, ERROR, CRITICAL
    TOPWAY_JSON_LOGS              -> Emit JSON log lines instead of console text
    TOPWAY_AUDIT_LOG              -> Path of the JSON-lines audit file
    TOPWAY_ENV_FILE               -> Optional .env file to read first
"""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# CONSTANTS
# =============================================================================

RAILWAY_API_URL = "https://backboard.railway.app/graphql/v2"

DEFAULT_REFRESH_INTERVAL = 30

# Seconds -> label, in the order a settings picker shows them
REFRESH_INTERVALS: dict[int, str] = {
    15: "15 seconds",
    30: "30 seconds",
    60: "1 minute",
    300: "5 minutes",
}


# =============================================================================
# CONFIGURATION
# =============================================================================


class Configuration(BaseSettings):
    """
    Process-wide user configuration.

    The token and workspace id gate every remote operation: if either is
    empty, AppState refuses to touch the network. The token is a SecretStr so
    it never shows up in reprs or log lines; use get_secret_value() at the
    single place it is sent.

    USAGE:
    ------
        config = load_settings()
        if config.is_configured:
            ...
    """

    model_config = SettingsConfigDict(
        env_prefix="TOPWAY_",
        extra="ignore",
        populate_by_name=True,
        # setters on AppState assign fields directly; keep them validated
        validate_assignment=True,
    )

    # -------------------------------------------------------------------------
    # CREDENTIALS
    # -------------------------------------------------------------------------

    api_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("RAILWAY_TOKEN", "TOPWAY_API_TOKEN"),
        description="Railway API token",
    )
    # Create one at https://railway.app/account/tokens.

    workspace_id: str = Field(
        default="",
        validation_alias=AliasChoices("RAILWAY_WORKSPACE_ID", "TOPWAY_WORKSPACE_ID"),
        description="Railway workspace id",
    )
    # In the Railway dashboard: Cmd+K -> "Copy Active Workspace ID".

    # -------------------------------------------------------------------------
    # AUTO-REFRESH
    # -------------------------------------------------------------------------

    auto_refresh_enabled: bool = Field(
        default=False,
        description="Periodically re-fetch the project list",
    )

    auto_refresh_interval: int = Field(
        default=DEFAULT_REFRESH_INTERVAL,
        description="Seconds between project list refreshes",
    )

    # -------------------------------------------------------------------------
    # AMBIENT SETTINGS
    # -------------------------------------------------------------------------

    api_url: str = Field(
        default=RAILWAY_API_URL,
        description="Railway GraphQL endpoint",
    )

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )

    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file",
    )
    # None means audit entries go through structlog to stdout.

    # -------------------------------------------------------------------------
    # VALIDATORS
    # -------------------------------------------------------------------------

    @field_validator("auto_refresh_interval")
    @classmethod
    def validate_refresh_interval(cls, v: int) -> int:
        """Only the intervals offered by the settings picker are accepted."""
        if v not in REFRESH_INTERVALS:
            allowed = ", ".join(str(s) for s in REFRESH_INTERVALS)
            raise ValueError(f"auto_refresh_interval must be one of {allowed}")
        return v

    @field_validator("workspace_id")
    @classmethod
    def strip_workspace_id(cls, v: str) -> str:
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    # -------------------------------------------------------------------------
    # COMPUTED PROPERTIES
    # -------------------------------------------------------------------------

    @property
    def token(self) -> str:
        """Plain-text API token, for the Authorization header only."""
        return self.api_token.get_secret_value()

    @property
    def is_configured(self) -> bool:
        """True when both the token and the workspace id are set."""
        return bool(self.token) and bool(self.workspace_id)

    @property
    def refresh_interval_label(self) -> str:
        return REFRESH_INTERVALS[self.auto_refresh_interval]


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> Configuration:
    """
    Load configuration from the environment with validation.

    If TOPWAY_ENV_FILE is set, that file is read as an additional source.
    Real environment variables take precedence over the file.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return Configuration(
        _env_file=os.environ.get("TOPWAY_ENV_FILE"),
    )
