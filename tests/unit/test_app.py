# ABOUTME: Unit tests for the topway console entry point
# ABOUTME: Tests project list rendering, the run loop, and exit codes

from unittest.mock import AsyncMock, patch

import pytest

from topway.app import format_projects, main, run
from topway.state import AppState
from topway.utils.client import InvalidEndpointError, UnauthorizedError
from topway.utils.models import Project


@pytest.mark.unit
class TestFormatProjects:
    """Tests for format_projects."""

    def test_empty(self):
        assert format_projects([]) == "No projects found in this workspace."

    def test_lists_services_and_environments(self, sample_project: Project):
        output = format_projects([sample_project])

        assert output.splitlines() == [
            "Found 1 project(s):",
            "",
            "- api (p1)",
            "    environments: production, staging",
            "    * web (s1)",
        ]

    def test_project_without_services(self):
        project = Project(id="p2", name="bare", services=(), environments=())
        output = format_projects([project])

        assert "    environments: none" in output
        assert "    services: none" in output


@pytest.mark.unit
class TestRun:
    """Tests for run."""

    async def test_prints_projects(self, app_state: AppState, capsys: pytest.CaptureFixture):
        assert await run(app_state) == 0

        assert "- api (p1)" in capsys.readouterr().out
        assert app_state.is_auto_refreshing is False

    async def test_fetch_failure(
        self, app_state: AppState, mock_railway_client: AsyncMock, capsys: pytest.CaptureFixture
    ):
        mock_railway_client.fetch_projects.side_effect = UnauthorizedError()

        assert await run(app_state) == 1
        assert "Found" not in capsys.readouterr().out

    async def test_unconfigured(self, unconfigured_state: AppState):
        assert await run(unconfigured_state) == 1


@pytest.mark.unit
class TestMain:
    """Tests for the console script exit codes."""

    @pytest.mark.parametrize(
        ("outcome", "code"),
        [
            ({"return_value": 0}, 0),
            ({"return_value": 1}, 1),
            ({"side_effect": KeyboardInterrupt()}, 0),
            ({"side_effect": InvalidEndpointError("ftp://x")}, 2),
        ],
    )
    def test_exit_codes(self, outcome, code):
        with (
            patch("topway.app.configure_logging"),
            patch("topway.app._main", AsyncMock(**outcome)),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == code
