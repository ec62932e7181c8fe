# ABOUTME: Application state for topway: the store behind every UI panel
# ABOUTME: Calls the Railway client, tracks busy/error state and runs auto-refresh

"""
Application state and the auto-refresh loop.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

AppState is the single source of truth for what the UI shows and the only
component that talks to RailwayClient. It holds:

- projects: the last successful project listing
- is_loading: the shared busy flag for list-affecting operations
- error_message: one error slot, shared by every operation
- the Configuration (token, workspace id, auto-refresh settings)
- at most one background refresh task

=============================================================================
TWO KINDS OF OPERATIONS
=============================================================================

LIST-AFFECTING (load_projects, create_service, create_service_with_image,
delete_project, delete_service):
    - set is_loading for their duration and clear the error slot on start
    - serialize on one asyncio.Lock, so a background refresh and a deletion
      cannot overwrite each other's project list out of order
    - mutations re-fetch the whole project list on success instead of
      patching it locally

PANEL (fetch_variables, fetch_deployments, upsert_variable, delete_variable,
restart_deployment, redeploy_service):
    - never touch is_loading and never wait for the lock, so a variables
      panel can load while the project list is refreshing
    - results are returned to the caller, not stored

Every operation checks the configuration first; with no token or workspace id
it stores the configuration message and returns False / [] without any
network I/O. Failures never raise out of AppState: the RailwayError is turned
into its display string and stored in error_message. A later success does not
clear an error left by a panel operation; call clear_error().

=============================================================================
CONCURRENCY
=============================================================================

Everything runs on one asyncio event loop and state is only mutated by the
coroutine that issued the call. The setters that start the refresh loop must
be called from inside that loop.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import SecretStr

from topway.utils.client import RailwayClient, RailwayError
from topway.utils.logging import AuditLogger, set_correlation_id
from topway.utils.models import variables_from_mapping
from topway.utils.safety import ConfigurationGuard

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from topway.config import Configuration
    from topway.utils.models import Deployment, EnvironmentVariable, Project

logger = structlog.get_logger(__name__)


class AppState:
    """
    The store, its async operations and the auto-refresh loop.

    USAGE:
    ------
        async with AppState(load_settings()) as state:
            await state.load_projects()
            for project in state.projects:
                ...

    Use it as an async context manager so the HTTP connection pool is opened
    and the refresh loop is stopped on exit.
    """

    def __init__(
        self,
        configuration: Configuration,
        client: RailwayClient | None = None,
        audit_logger: AuditLogger | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize application state.

        Args:
            configuration: Settings; AppState mutates it only through its
                setters.
            client: Railway client. When omitted one is created for
                configuration.api_url and opened/closed with this state. A
                client passed in is managed by the caller.
            audit_logger: Audit trail for mutations. Defaults to one writing
                to configuration.audit_log.
            sleep: Awaitable used between refreshes. Replaceable in tests.
        """
        self._configuration = configuration
        self._owns_client = client is None
        self._client = client if client is not None else RailwayClient(configuration.api_url)
        self._audit = (
            audit_logger if audit_logger is not None else AuditLogger(configuration.audit_log)
        )
        self._guard = ConfigurationGuard(configuration)
        self._sleep = sleep

        self._projects: list[Project] = []
        self._is_loading = False
        self._error_message: str | None = None

        self._list_lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> AppState:
        if self._owns_client:
            await self._client.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.shutdown()
        if self._owns_client:
            await self._client.__aexit__(*args)

    # -------------------------------------------------------------------------
    # READ-ONLY VIEW
    # -------------------------------------------------------------------------

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def has_error(self) -> bool:
        return self._error_message is not None

    @property
    def is_configured(self) -> bool:
        return self._configuration.is_configured

    @property
    def is_auto_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def find_project(self, project_id: str) -> Project | None:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def clear_error(self) -> None:
        self._error_message = None

    # -------------------------------------------------------------------------
    # INTERNAL HELPERS
    # -------------------------------------------------------------------------

    def _blocked(self, operation: str, target: str | None = None) -> bool:
        """Store the configuration error and return True if not configured."""
        blocked = self._guard.check(operation)
        if blocked is None:
            return False
        self._error_message = blocked.format_message()
        if target is not None:
            self._audit.log_blocked(operation, target, blocked.reason)
        return True

    def _record_error(self, operation: str, error: RailwayError, target: str | None = None) -> None:
        logger.warning("Railway operation failed", operation=operation, error=str(error))
        self._error_message = str(error)
        if target is not None:
            self._audit.log_error(operation, target, str(error))

    async def _fetch_projects_locked(self) -> bool:
        """Replace the project list with a fresh fetch. Caller holds the lock."""
        self._is_loading = True
        self._error_message = None
        try:
            projects = await self._client.fetch_projects(
                self._configuration.workspace_id,
                self._configuration.token,
            )
        except RailwayError as e:
            self._record_error("load_projects", e)
            return False
        finally:
            self._is_loading = False

        self._projects = projects
        logger.info("Projects loaded", count=len(projects))
        return True

    async def _list_mutation(
        self,
        operation: str,
        target: str,
        call: Callable[[], Awaitable[Any]],
    ) -> bool:
        """
        Run a mutation that can change the project list, then re-fetch it.

        The mutation counts as successful unless the server answers False.
        The project list is re-fetched only after a success; a failed
        re-fetch leaves its error in the slot but does not turn the mutation
        into a failure.
        """
        if self._blocked(operation, target):
            return False

        async with self._list_lock:
            self._is_loading = True
            self._error_message = None
            try:
                result = await call()
                succeeded = result is not False
                self._audit.log_write(operation, target, succeeded)
                logger.info("Railway mutation completed", operation=operation,
                            target=target, succeeded=succeeded)
                if succeeded:
                    await self._fetch_projects_locked()
                return succeeded
            except RailwayError as e:
                self._record_error(operation, e, target)
                return False
            finally:
                self._is_loading = False

    async def _panel_mutation(
        self,
        operation: str,
        target: str,
        call: Callable[[], Awaitable[bool]],
    ) -> bool:
        """Run a mutation that does not affect the project list."""
        if self._blocked(operation, target):
            return False

        try:
            succeeded = await call()
        except RailwayError as e:
            self._record_error(operation, e, target)
            return False

        self._audit.log_write(operation, target, succeeded)
        logger.info("Railway mutation completed", operation=operation,
                    target=target, succeeded=succeeded)
        return succeeded

    # =========================================================================
    # PROJECT LIST
    # =========================================================================

    async def load_projects(self) -> bool:
        """
        Re-fetch the whole project list for the configured workspace.

        Returns:
            True if the list was replaced, False on any failure (the error
            is in error_message and the previous list is kept).
        """
        set_correlation_id("")
        if self._blocked("load_projects"):
            return False
        async with self._list_lock:
            return await self._fetch_projects_locked()

    async def create_service(self, project_id: str, repo: str) -> bool:
        """Create a service from a GitHub repo ("owner/name") and re-fetch."""
        set_correlation_id("")
        token = self._configuration.token
        return await self._list_mutation(
            "create_service",
            project_id,
            lambda: self._client.create_service(project_id, repo.strip(), token),
        )

    async def create_service_with_image(self, project_id: str, image: str) -> bool:
        """Create a service from a Docker image and re-fetch."""
        set_correlation_id("")
        token = self._configuration.token
        return await self._list_mutation(
            "create_service_with_image",
            project_id,
            lambda: self._client.create_service_with_image(project_id, image.strip(), token),
        )

    async def delete_project(self, project_id: str) -> bool:
        """
        Delete a project, then re-fetch.

        Nothing is removed locally: the project disappears from `projects`
        only once the re-fetch succeeds.
        """
        set_correlation_id("")
        token = self._configuration.token
        return await self._list_mutation(
            "delete_project",
            project_id,
            lambda: self._client.delete_project(project_id, token),
        )

    async def delete_service(self, service_id: str) -> bool:
        set_correlation_id("")
        token = self._configuration.token
        return await self._list_mutation(
            "delete_service",
            service_id,
            lambda: self._client.delete_service(service_id, token),
        )

    # =========================================================================
    # VARIABLES
    # =========================================================================

    async def fetch_variables(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
    ) -> list[EnvironmentVariable]:
        """
        Get one scope's variables, sorted by name.

        Returns an empty list on failure; the error is in error_message.
        """
        set_correlation_id("")
        if self._blocked("fetch_variables"):
            return []
        try:
            mapping = await self._client.fetch_variables(
                project_id, environment_id, service_id, self._configuration.token
            )
        except RailwayError as e:
            self._record_error("fetch_variables", e)
            return []
        return variables_from_mapping(mapping)

    async def upsert_variable(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        name: str,
        value: str,
    ) -> bool:
        """Create or overwrite a variable. Surrounding whitespace is stripped from the name."""
        set_correlation_id("")
        name = name.strip()
        token = self._configuration.token
        return await self._panel_mutation(
            "upsert_variable",
            f"{project_id}/{environment_id}/{service_id}/{name}",
            lambda: self._client.upsert_variable(
                project_id, environment_id, service_id, name, value, token
            ),
        )

    async def delete_variable(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        name: str,
    ) -> bool:
        set_correlation_id("")
        token = self._configuration.token
        return await self._panel_mutation(
            "delete_variable",
            f"{project_id}/{environment_id}/{service_id}/{name}",
            lambda: self._client.delete_variable(
                project_id, environment_id, service_id, name, token
            ),
        )

    # =========================================================================
    # DEPLOYMENTS
    # =========================================================================

    async def fetch_deployments(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
    ) -> list[Deployment]:
        """Get the ten most recent deployments, newest first as the server orders them."""
        set_correlation_id("")
        if self._blocked("fetch_deployments"):
            return []
        try:
            return await self._client.fetch_deployments(
                project_id, environment_id, service_id, self._configuration.token
            )
        except RailwayError as e:
            self._record_error("fetch_deployments", e)
            return []

    async def restart_deployment(self, deployment_id: str) -> bool:
        set_correlation_id("")
        token = self._configuration.token
        return await self._panel_mutation(
            "restart_deployment",
            deployment_id,
            lambda: self._client.restart_deployment(deployment_id, token),
        )

    async def redeploy_service(self, environment_id: str, service_id: str) -> bool:
        set_correlation_id("")
        token = self._configuration.token
        return await self._panel_mutation(
            "redeploy_service",
            f"{environment_id}/{service_id}",
            lambda: self._client.redeploy_service(environment_id, service_id, token),
        )

    # =========================================================================
    # CONFIGURATION SETTERS
    # =========================================================================

    def set_api_token(self, token: str) -> None:
        self._configuration.api_token = SecretStr(token)

    def set_workspace_id(self, workspace_id: str) -> None:
        self._configuration.workspace_id = workspace_id

    def set_auto_refresh_enabled(self, enabled: bool) -> None:
        """Persist the flag and start or stop the refresh loop to match."""
        self._configuration.auto_refresh_enabled = enabled
        if enabled:
            self.start_auto_refresh()
        else:
            self.stop_auto_refresh()

    def set_auto_refresh_interval(self, seconds: int) -> None:
        """
        Change the refresh interval (15, 30, 60 or 300 seconds).

        A running loop is restarted so the pending wait uses the new value.

        Raises:
            pydantic.ValidationError: For any other interval.
        """
        self._configuration.auto_refresh_interval = seconds
        if self._configuration.auto_refresh_enabled:
            self.restart_auto_refresh()

    def apply_settings(
        self,
        *,
        api_token: str,
        workspace_id: str,
        auto_refresh_interval: int,
        auto_refresh_enabled: bool,
    ) -> None:
        """Save a whole settings form: credentials, then interval, then the flag."""
        self.set_api_token(api_token)
        self.set_workspace_id(workspace_id)
        self.set_auto_refresh_interval(auto_refresh_interval)
        self.set_auto_refresh_enabled(auto_refresh_enabled)

    # =========================================================================
    # AUTO-REFRESH
    # =========================================================================

    async def _auto_refresh_loop(self) -> None:
        while True:
            await self._sleep(self._configuration.auto_refresh_interval)
            await self.load_projects()

    def start_auto_refresh(self) -> None:
        """
        (Re)start the refresh loop if enabled and configured.

        Any existing loop is cancelled first, so at most one is ever alive.
        """
        self.stop_auto_refresh()
        if not (self._configuration.auto_refresh_enabled and self.is_configured):
            return
        self._refresh_task = asyncio.create_task(
            self._auto_refresh_loop(), name="topway-auto-refresh"
        )
        logger.info("Auto-refresh started", interval=self._configuration.auto_refresh_interval)

    def stop_auto_refresh(self) -> None:
        """Cancel the pending wait (or in-flight refresh) of the running loop."""
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Auto-refresh stopped")

    def restart_auto_refresh(self) -> None:
        self.stop_auto_refresh()
        self.start_auto_refresh()

    def initialize_auto_refresh(self) -> None:
        """Start the loop at launch if the saved settings ask for it."""
        if self._configuration.auto_refresh_enabled and self.is_configured:
            self.start_auto_refresh()

    async def shutdown(self) -> None:
        """Stop the refresh loop and wait until its task has finished."""
        task = self._refresh_task
        self.stop_auto_refresh()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
