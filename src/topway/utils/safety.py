# ABOUTME: Configuration guard for topway remote operations
# ABOUTME: Refuses any Railway call until a token and workspace id are configured

"""Precondition checks that run before any request reaches the network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from topway.config import Configuration

logger = structlog.get_logger(__name__)

CONFIGURATION_REQUIRED_MESSAGE = (
    "Please configure your API token and Workspace ID in settings."
)


@dataclass
class ConfigurationIncomplete:
    """Response indicating an operation was refused for missing settings."""

    operation: str
    missing: tuple[str, ...]

    @property
    def reason(self) -> str:
        return f"missing {', '.join(self.missing)}"

    def format_message(self) -> str:
        """The message shown in the UI error slot."""
        return CONFIGURATION_REQUIRED_MESSAGE


class ConfigurationGuard:
    """Gate every remote operation on a complete configuration."""

    def __init__(self, configuration: Configuration) -> None:
        """Initialize the guard.

        Args:
            configuration: Live configuration; read on every check so setter
                changes take effect immediately.
        """
        self._configuration = configuration

    def check(self, operation: str) -> ConfigurationIncomplete | None:
        """Check whether an operation may reach the network.

        Args:
            operation: Operation name, for the log line

        Returns:
            ConfigurationIncomplete if blocked, None if allowed
        """
        missing: list[str] = []
        if not self._configuration.token:
            missing.append("api_token")
        if not self._configuration.workspace_id:
            missing.append("workspace_id")

        if missing:
            logger.info("Operation blocked by incomplete configuration",
                        operation=operation, missing=missing)
            return ConfigurationIncomplete(operation=operation, missing=tuple(missing))
        return None
