# ABOUTME: Console entry point for topway
# ABOUTME: Loads settings, lists the workspace and keeps it refreshed until interrupted

"""topway - Railway workspace overview from the terminal."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from topway.config import load_settings
from topway.state import AppState
from topway.utils.client import InvalidEndpointError
from topway.utils.logging import configure_logging

if TYPE_CHECKING:
    from topway.utils.models import Project

logger = structlog.get_logger(__name__)


def format_projects(projects: list[Project]) -> str:
    """Render the project list the way the menu shows it."""
    if not projects:
        return "No projects found in this workspace."

    lines = [f"Found {len(projects)} project(s):", ""]
    for project in projects:
        lines.append(f"- {project.name} ({project.id})")
        envs = ", ".join(env.name for env in project.environments) or "none"
        lines.append(f"    environments: {envs}")
        if not project.services:
            lines.append("    services: none")
        for service in project.services:
            lines.append(f"    * {service.name} ({service.id})")
    return "\n".join(lines)


async def run(state: AppState) -> int:
    """
    Fetch once, then keep the auto-refresh loop running if it is enabled.

    Returns:
        Process exit code: 0 on success, 1 if the first fetch failed.
    """
    if not await state.load_projects():
        logger.error("Could not load projects", error=state.error_message)
        return 1

    print(format_projects(state.projects))

    if not state.configuration.auto_refresh_enabled:
        return 0

    state.initialize_auto_refresh()
    logger.info(
        "Watching workspace",
        every=state.configuration.refresh_interval_label,
    )

    seen = [(p.id, p.name, p.services) for p in state.projects]
    while state.is_auto_refreshing:
        await asyncio.sleep(1)
        current = [(p.id, p.name, p.services) for p in state.projects]
        if current != seen:
            seen = current
            print(format_projects(state.projects))
    return 0


async def _main() -> int:
    settings = load_settings()
    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    async with AppState(settings) as state:
        return await run(state)


def main() -> None:
    """Run the topway console client."""
    configure_logging(level="INFO")
    logger.info("topway starting")

    try:
        code = asyncio.run(_main())
    except KeyboardInterrupt:
        logger.info("topway interrupted")
        sys.exit(0)
    except (ValidationError, InvalidEndpointError) as e:
        logger.error("Invalid configuration", error=str(e))
        sys.exit(2)
    sys.exit(code)


if __name__ == "__main__":
    main()
