# ABOUTME: Pytest fixtures and configuration for topway tests
# ABOUTME: Provides shared fixtures for unit and integration tests

import os
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from topway.config import Configuration
from topway.state import AppState
from topway.utils.client import RailwayClient
from topway.utils.logging import AuditLogger
from topway.utils.models import Deployment, Environment, Project, Service

CONFIG_ENV_VARS = (
    "RAILWAY_TOKEN",
    "RAILWAY_WORKSPACE_ID",
    "TOPWAY_API_TOKEN",
    "TOPWAY_WORKSPACE_ID",
    "TOPWAY_AUTO_REFRESH_ENABLED",
    "TOPWAY_AUTO_REFRESH_INTERVAL",
    "TOPWAY_API_URL",
    "TOPWAY_LOG_LEVEL",
    "TOPWAY_JSON_LOGS",
    "TOPWAY_AUDIT_LOG",
    "TOPWAY_ENV_FILE",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every topway/Railway variable from the environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def configuration(clean_env: None) -> Configuration:
    """Create a complete configuration for testing."""
    return Configuration(
        api_token=SecretStr("test-token"),
        workspace_id="ws-1",
        auto_refresh_enabled=False,
        auto_refresh_interval=30,
    )


@pytest.fixture
def unconfigured_configuration(clean_env: None) -> Configuration:
    """Create a configuration with no token or workspace id."""
    return Configuration()


@pytest.fixture
def sample_project() -> Project:
    """Create a sample project with one service and two environments."""
    return Project(
        id="p1",
        name="api",
        services=(Service(id="s1", name="web"),),
        environments=(
            Environment(id="e1", name="production"),
            Environment(id="e2", name="staging"),
        ),
    )


@pytest.fixture
def sample_deployment() -> Deployment:
    """Create a successful deployment with a static URL."""
    return Deployment(
        id="d1",
        status="SUCCESS",
        created_at="2025-01-15T10:30:00.000Z",
        static_url="web-production.up.railway.app",
    )


@pytest.fixture
def projects_payload() -> dict:
    """Raw `data` object of the workspace projects query."""
    return {
        "workspace": {
            "projects": {
                "edges": [
                    {
                        "node": {
                            "id": "p1",
                            "name": "api",
                            "services": {"edges": [{"node": {"id": "s1", "name": "web"}}]},
                            "environments": {
                                "edges": [
                                    {"node": {"id": "e1", "name": "production"}},
                                    {"node": {"id": "e2", "name": "staging"}},
                                ]
                            },
                        }
                    }
                ]
            }
        }
    }


@pytest.fixture
def mock_railway_client(sample_project: Project, sample_deployment: Deployment) -> AsyncMock:
    """Create a mock Railway client with successful default responses."""
    client = AsyncMock(spec=RailwayClient)

    client.fetch_projects.return_value = [sample_project]
    client.create_service.return_value = "s-new"
    client.create_service_with_image.return_value = "s-img"
    client.delete_project.return_value = True
    client.delete_service.return_value = True
    client.fetch_variables.return_value = {"PORT": "8080", "DATABASE_URL": "postgres://db"}
    client.upsert_variable.return_value = True
    client.delete_variable.return_value = True
    client.fetch_deployments.return_value = [sample_deployment]
    client.restart_deployment.return_value = True
    client.redeploy_service.return_value = True

    return client


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    """Create a mock audit logger."""
    return MagicMock(spec=AuditLogger)


@pytest.fixture
async def app_state(
    configuration: Configuration,
    mock_railway_client: AsyncMock,
    mock_audit_logger: MagicMock,
) -> AsyncIterator[AppState]:
    """Create application state wired to the mock client."""
    state = AppState(configuration, client=mock_railway_client, audit_logger=mock_audit_logger)
    yield state
    await state.shutdown()


@pytest.fixture
async def unconfigured_state(
    unconfigured_configuration: Configuration,
    mock_railway_client: AsyncMock,
    mock_audit_logger: MagicMock,
) -> AsyncIterator[AppState]:
    """Create application state with missing credentials."""
    state = AppState(
        unconfigured_configuration, client=mock_railway_client, audit_logger=mock_audit_logger
    )
    yield state
    await state.shutdown()


# Integration test fixtures


@pytest.fixture
def railway_token() -> str | None:
    """Get Railway API token from environment."""
    return os.environ.get("RAILWAY_TOKEN")


@pytest.fixture
def railway_workspace_id() -> str | None:
    """Get Railway workspace id from environment."""
    return os.environ.get("RAILWAY_WORKSPACE_ID")


@pytest.fixture
async def live_railway_client(
    railway_token: str | None,
) -> AsyncIterator[RailwayClient | None]:
    """Create a live Railway client for integration tests."""
    if not railway_token:
        yield None
        return

    async with RailwayClient() as client:
        yield client
