# ABOUTME: Railway GraphQL API client with typed decoding and error classification
# ABOUTME: Provides an async interface to every Railway operation topway performs

"""
Railway GraphQL API client with structured error handling.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the HTTP client for Railway's public GraphQL API. It
handles:

1. HTTP COMMUNICATION: one POST per operation to a single endpoint
2. AUTHENTICATION: a Bearer token on every request
3. DECODING: the {data, errors} envelope, then the operation's own shape
4. ERROR CLASSIFICATION: every failure becomes one RailwayError subclass

=============================================================================
RAILWAY GRAPHQL API OVERVIEW
=============================================================================

Every operation is:

    POST https://backboard.railway.app/graphql/v2
    Content-Type: application/json
    Authorization: Bearer <token>

    {"query": "<GraphQL document>"}

and every response is the same envelope:

    {"data": {...} | null, "errors": [{"message": "..."}] | null}

=============================================================================
ERROR CLASSIFICATION
=============================================================================

The order of the checks matters:

    1. HTTP 401                          -> UnauthorizedError (body ignored)
    2. timeout / DNS / TLS / connection  -> NetworkError(cause)
    3. body is not a JSON envelope       -> DecodeError(cause)
    4. non-empty "errors"                -> GraphQLError("msg1, msg2")
    5. "data" missing or null            -> UnknownError
    6. "data" lacks the expected fields  -> DecodeError(cause)

Nothing is retried. A failed attempt is surfaced as-is and the user triggers
the action again.

=============================================================================
USAGE
=============================================================================

    async with RailwayClient() as client:
        projects = await client.fetch_projects(workspace_id, token)
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from topway.config import RAILWAY_API_URL
from topway.utils import graphql
from topway.utils.models import (
    deployments_from_connection,
    projects_from_workspace,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from topway.utils.models import Deployment, Project

logger = structlog.get_logger(__name__)

# Payload shapes that mean "the response did not match what we asked for"
_DECODE_FAILURES = (KeyError, TypeError, ValueError)


# =============================================================================
# ERRORS
# =============================================================================


class RailwayError(Exception):
    """
    Base class for every failure the client reports.

    str(error) is the human-readable message the UI shows in its single error
    slot, so each subclass formats itself.

    USAGE:
    ------
    try:
        await client.delete_project(project_id, token)
    except UnauthorizedError:
        ...  # prompt for a new token
    except RailwayError as e:
        show(str(e))
    """

    message = "An unknown error occurred"

    def __str__(self) -> str:
        return self.message


class InvalidEndpointError(RailwayError):
    """The configured endpoint is not an absolute http(s) URL."""

    message = "Invalid API URL"

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(url)


class NetworkError(RailwayError):
    """Transport-level failure: timeout, DNS, TLS, refused connection."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(cause)

    def __str__(self) -> str:
        return f"Network error: {str(self.cause) or type(self.cause).__name__}"


class DecodeError(RailwayError):
    """The response body did not have the expected shape."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(cause)

    def __str__(self) -> str:
        return f"Failed to parse response: {self.cause}"


class GraphQLError(RailwayError):
    """
    The server answered with one or more named errors.

    All messages are joined with ", " into one string; there is no per-code
    branching.
    """

    def __init__(self, message: str) -> None:
        self.detail = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"API error: {self.detail}"


class UnauthorizedError(RailwayError):
    """HTTP 401: the token is missing, revoked or wrong."""

    message = "Invalid API token"


class UnknownError(RailwayError):
    """The envelope had neither data nor errors."""


# =============================================================================
# RESPONSE ENVELOPE
# =============================================================================


class GraphQLErrorItem(BaseModel):
    """One entry of the envelope's `errors` array."""

    model_config = {"extra": "ignore"}

    message: str


class GraphQLResponse(BaseModel):
    """The `{data, errors}` envelope shared by every operation."""

    model_config = {"extra": "ignore"}

    data: dict[str, Any] | None = None
    errors: list[GraphQLErrorItem] | None = None

    def raise_for_errors(self) -> dict[str, Any]:
        """
        Return `data`, or raise the classified failure.

        Errors win over data: a partial result that came with errors is still
        a failed operation.
        """
        if self.errors:
            raise GraphQLError(", ".join(err.message for err in self.errors))
        if self.data is None:
            raise UnknownError()
        return self.data


# =============================================================================
# RAILWAY CLIENT
# =============================================================================


class RailwayClient:
    """
    Async Railway API client.

    LIFECYCLE:
    ----------
    1. Create client: client = RailwayClient()
    2. Enter context: async with client: ...
    3. Use client: await client.fetch_projects(workspace_id, token)
    4. Exit context: HTTP connections cleaned up

    The token is passed per call rather than stored, so one client keeps
    working after the user changes credentials in settings.
    """

    def __init__(
        self,
        endpoint: str = RAILWAY_API_URL,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the Railway client.

        NOTE: This only creates the client object. The HTTP connection pool
        is created later in __aenter__ (when using 'async with').

        Args:
            endpoint: GraphQL endpoint. The public Railway URL by default.
            timeout: Request timeout in seconds. None keeps httpx's default.

        Raises:
            InvalidEndpointError: If the endpoint is not an absolute
                http(s) URL.
        """
        try:
            url = httpx.URL(endpoint)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidEndpointError(endpoint) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidEndpointError(endpoint)

        self._endpoint = str(url)
        self._timeout = timeout
        # HTTP client is created in __aenter__, not here
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def __aenter__(self) -> RailwayClient:
        """Enter async context and create the HTTP connection pool."""
        kwargs: dict[str, Any] = {
            "headers": {"Content-Type": "application/json"},
        }
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context and close the HTTP connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _execute(
        self,
        operation: str,
        document: str,
        token: str,
        decode: Callable[[dict[str, Any]], Any],
    ) -> Any:
        """
        Post one GraphQL document and decode its result.

        This is the CORE REQUEST METHOD. Every public operation is a document
        builder plus a decode function handed to this method.

        Args:
            operation: Operation name, for logs only
            document: The complete GraphQL query or mutation text
            token: Railway API token
            decode: Turns the envelope's `data` object into the typed result

        Returns:
            Whatever `decode` returns

        Raises:
            UnauthorizedError, NetworkError, DecodeError, GraphQLError,
            UnknownError
            RuntimeError: If client not initialized (forgot async with)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(operation=operation, endpoint=self._endpoint)
        log.debug("Sending Railway API request")

        try:
            response = await self._client.post(
                self._endpoint,
                json={"query": document},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            log.warning("Railway API request failed", error=str(e) or type(e).__name__)
            raise NetworkError(e) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.warning("Railway API rejected token", status=response.status_code)
            raise UnauthorizedError()

        try:
            envelope = GraphQLResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            log.warning(
                "Railway API returned an undecodable body",
                status=response.status_code,
                body=response.text[:200],
            )
            raise DecodeError(e) from e

        try:
            data = envelope.raise_for_errors()
        except RailwayError as e:
            log.warning("Railway API reported failure", status=response.status_code, error=str(e))
            raise

        try:
            return decode(data)
        except _DECODE_FAILURES as e:
            log.warning("Railway API response has unexpected shape", error=repr(e))
            raise DecodeError(e) from e

    # =========================================================================
    # PROJECTS
    # =========================================================================

    async def fetch_projects(self, workspace_id: str, token: str) -> list[Project]:
        """
        List every project in a workspace with its services and environments.

        Args:
            workspace_id: Railway workspace id
            token: Railway API token

        Returns:
            List of Project objects, in server order
        """
        return await self._execute(
            "fetch_projects",
            graphql.projects_query(workspace_id),
            token,
            projects_from_workspace,
        )

    async def delete_project(self, project_id: str, token: str) -> bool:
        """Delete a project and everything in it. Returns the server's flag."""
        return await self._execute(
            "delete_project",
            graphql.project_delete_mutation(project_id),
            token,
            _bool_field("projectDelete"),
        )

    # =========================================================================
    # SERVICES
    # =========================================================================

    async def create_service(self, project_id: str, repo: str, token: str) -> str:
        """
        Create a service that builds from a GitHub repository.

        Args:
            project_id: Project to add the service to
            repo: Repository as "owner/name"
            token: Railway API token

        Returns:
            The new service id
        """
        return await self._execute(
            "create_service",
            graphql.service_create_mutation(project_id, repo=repo),
            token,
            _created_id,
        )

    async def create_service_with_image(self, project_id: str, image: str, token: str) -> str:
        """Create a service that runs a Docker image. Returns the new id."""
        return await self._execute(
            "create_service_with_image",
            graphql.service_create_mutation(project_id, image=image),
            token,
            _created_id,
        )

    async def delete_service(self, service_id: str, token: str) -> bool:
        return await self._execute(
            "delete_service",
            graphql.service_delete_mutation(service_id),
            token,
            _bool_field("serviceDelete"),
        )

    # =========================================================================
    # VARIABLES
    # =========================================================================

    async def fetch_variables(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        token: str,
    ) -> dict[str, str]:
        """
        Get the variables of one (project, environment, service) scope.

        Returns:
            Mapping of variable name to value
        """
        return await self._execute(
            "fetch_variables",
            graphql.variables_query(project_id, environment_id, service_id),
            token,
            _variables,
        )

    async def upsert_variable(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        name: str,
        value: str,
        token: str,
    ) -> bool:
        """Create or overwrite one variable. Returns the server's flag."""
        return await self._execute(
            "upsert_variable",
            graphql.variable_upsert_mutation(project_id, environment_id, service_id, name, value),
            token,
            _bool_field("variableUpsert"),
        )

    async def delete_variable(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        name: str,
        token: str,
    ) -> bool:
        return await self._execute(
            "delete_variable",
            graphql.variable_delete_mutation(project_id, environment_id, service_id, name),
            token,
            _bool_field("variableDelete"),
        )

    # =========================================================================
    # DEPLOYMENTS
    # =========================================================================

    async def fetch_deployments(
        self,
        project_id: str,
        environment_id: str,
        service_id: str,
        token: str,
    ) -> list[Deployment]:
        """
        Get the most recent deployments of a service in an environment.

        Always asks for one page of graphql.DEPLOYMENTS_PAGE_SIZE (10)
        entries; older deployments are not reachable.
        """
        return await self._execute(
            "fetch_deployments",
            graphql.deployments_query(project_id, environment_id, service_id),
            token,
            deployments_from_connection,
        )

    async def restart_deployment(self, deployment_id: str, token: str) -> bool:
        return await self._execute(
            "restart_deployment",
            graphql.deployment_restart_mutation(deployment_id),
            token,
            _bool_field("deploymentRestart"),
        )

    async def redeploy_service(self, environment_id: str, service_id: str, token: str) -> bool:
        """Trigger a fresh deployment of a service instance."""
        return await self._execute(
            "redeploy_service",
            graphql.service_redeploy_mutation(environment_id, service_id),
            token,
            _bool_field("serviceInstanceRedeploy"),
        )


# =============================================================================
# DECODERS
# =============================================================================


def _bool_field(name: str) -> Callable[[dict[str, Any]], bool]:
    """Decoder for mutations whose result is a single Boolean field."""

    def decode(data: dict[str, Any]) -> bool:
        value = data[name]
        if not isinstance(value, bool):
            raise TypeError(f"field '{name}' must be a boolean, got {type(value).__name__}")
        return value

    return decode


def _created_id(data: dict[str, Any]) -> str:
    value = data["serviceCreate"]["id"]
    if not isinstance(value, str):
        raise TypeError("field 'serviceCreate.id' must be a string")
    return value


def _variables(data: dict[str, Any]) -> dict[str, str]:
    variables = data["variables"]
    if not isinstance(variables, dict):
        raise TypeError("field 'variables' must be an object")
    for name, value in variables.items():
        if not isinstance(value, str):
            raise TypeError(f"variable '{name}' must have a string value")
    return dict(variables)
