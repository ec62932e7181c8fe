# ABOUTME: Typed snapshots of Railway resources decoded from GraphQL responses
# ABOUTME: Projects, services, environments, variables and deployments

"""
Railway resource models.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Railway's GraphQL API returns connection-shaped JSON:

    {
        "id": "p1",
        "name": "api",
        "services": {"edges": [{"node": {"id": "s1", "name": "web"}}]},
        "environments": {"edges": [{"node": {"id": "e1", "name": "production"}}]}
    }

The dataclasses below flatten those edges/node wrappers into plain lists.
Every model is frozen: these are snapshots of remote state, never edited
locally. A newer fetch replaces them wholesale.

Unlike a lenient .get()-with-defaults parser, from_api_response() indexes the
payload strictly. A missing key or a wrong type raises, and the client turns
that into a DecodeError so a malformed response never becomes an empty list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def _edges(connection: dict[str, Any]) -> list[dict[str, Any]]:
    """Unwrap a GraphQL connection into its node payloads."""
    edges = connection["edges"]
    if not isinstance(edges, list):
        raise TypeError(f"expected a list of edges, got {type(edges).__name__}")
    return [edge["node"] for edge in edges]


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


# =============================================================================
# SERVICES AND ENVIRONMENTS
# =============================================================================


@dataclass(frozen=True)
class Service:
    """A single deployable component (one app or container) in a project."""

    id: str
    name: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Service:
        return cls(id=_require_str(data, "id"), name=_require_str(data, "name"))


@dataclass(frozen=True)
class Environment:
    """A named deployment scope such as production or staging."""

    id: str
    name: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Environment:
        return cls(id=_require_str(data, "id"), name=_require_str(data, "name"))


# =============================================================================
# PROJECT
# =============================================================================


@dataclass(frozen=True)
class Project:
    """
    Root listing unit: a project with its services and environments.

    The lists are only as fresh as the last successful project fetch. Any
    mutation that can change them triggers a full re-fetch instead of a local
    patch.
    """

    id: str
    name: str
    services: tuple[Service, ...] = field(default_factory=tuple)
    environments: tuple[Environment, ...] = field(default_factory=tuple)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Project:
        """
        Create a Project from one `projects.edges[].node` payload.

        Raises:
            KeyError / TypeError: If the payload is not project-shaped.
        """
        return cls(
            id=_require_str(data, "id"),
            name=_require_str(data, "name"),
            services=tuple(
                Service.from_api_response(node) for node in _edges(data["services"])
            ),
            environments=tuple(
                Environment.from_api_response(node) for node in _edges(data["environments"])
            ),
        )

    def find_service(self, service_id: str) -> Service | None:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def find_environment(self, environment_id: str) -> Environment | None:
        for environment in self.environments:
            if environment.id == environment_id:
                return environment
        return None

    @property
    def default_environment(self) -> Environment | None:
        """The environment a variables panel opens on: the first one listed."""
        return self.environments[0] if self.environments else None


def projects_from_workspace(data: dict[str, Any]) -> list[Project]:
    """Decode the `data` object of the workspace projects query."""
    return [
        Project.from_api_response(node) for node in _edges(data["workspace"]["projects"])
    ]


# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================


@dataclass(frozen=True, order=True)
class EnvironmentVariable:
    """
    One variable in a (project, environment, service) scope.

    The name is unique within its scope, so it doubles as the identifier.
    Ordering compares name first, which gives the alphabetical listing order.
    """

    name: str
    value: str

    @property
    def id(self) -> str:
        return self.name


def variables_from_mapping(mapping: dict[str, str]) -> list[EnvironmentVariable]:
    """Turn a name -> value mapping into variables sorted by name."""
    return sorted(EnvironmentVariable(name=name, value=value) for name, value in mapping.items())


def variables_to_dotenv(variables: list[EnvironmentVariable]) -> str:
    """Render variables as NAME=value lines, the "copy all" format."""
    return "\n".join(f"{var.name}={var.value}" for var in variables)


# =============================================================================
# DEPLOYMENTS
# =============================================================================


class DeploymentStatus(str, Enum):
    """Deployment lifecycle states the UI distinguishes."""

    SUCCESS = "success"
    BUILDING = "building"
    DEPLOYING = "deploying"
    FAILED = "failed"
    CRASHED = "crashed"
    REMOVED = "removed"
    SLEEPING = "sleeping"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> DeploymentStatus:
        """Map a server status string (any case) to a known state."""
        try:
            return cls(raw.lower())
        except ValueError:
            return cls.UNKNOWN


_STATUS_DISPLAY = {
    DeploymentStatus.SUCCESS: "Running",
    DeploymentStatus.BUILDING: "Building",
    DeploymentStatus.DEPLOYING: "Deploying",
    DeploymentStatus.FAILED: "Failed",
    DeploymentStatus.CRASHED: "Crashed",
    DeploymentStatus.REMOVED: "Removed",
    DeploymentStatus.SLEEPING: "Sleeping",
}

_STATUS_COLOR = {
    DeploymentStatus.SUCCESS: "green",
    DeploymentStatus.BUILDING: "yellow",
    DeploymentStatus.DEPLOYING: "yellow",
    DeploymentStatus.FAILED: "red",
    DeploymentStatus.CRASHED: "red",
    DeploymentStatus.REMOVED: "gray",
    DeploymentStatus.SLEEPING: "purple",
}


@dataclass(frozen=True)
class Deployment:
    """
    One build/release of a service within an environment.

    `status` keeps the raw server string (e.g. "SUCCESS", "INITIALIZING") so
    nothing is lost; `status_kind` is the normalised enum.
    """

    id: str
    status: str
    created_at: str
    static_url: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Deployment:
        static_url = data.get("staticUrl")
        if static_url is not None and not isinstance(static_url, str):
            raise TypeError("field 'staticUrl' must be a string or null")
        return cls(
            id=_require_str(data, "id"),
            status=_require_str(data, "status"),
            created_at=_require_str(data, "createdAt"),
            static_url=static_url or None,
        )

    @property
    def status_kind(self) -> DeploymentStatus:
        return DeploymentStatus.parse(self.status)

    @property
    def status_display(self) -> str:
        """Human label: "Running" for success, else the capitalised status."""
        return _STATUS_DISPLAY.get(self.status_kind, self.status.capitalize())

    @property
    def status_color(self) -> str:
        return _STATUS_COLOR.get(self.status_kind, "gray")

    @property
    def public_url(self) -> str | None:
        """Railway returns the static domain without a scheme."""
        if not self.static_url:
            return None
        return f"https://{self.static_url}"

    @property
    def created_at_datetime(self) -> datetime | None:
        """Parse createdAt (ISO 8601, with or without fractional seconds)."""
        raw = self.created_at
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    @property
    def formatted_date(self) -> str:
        parsed = self.created_at_datetime
        if parsed is None:
            return self.created_at
        return parsed.strftime("%Y-%m-%d %H:%M")


def deployments_from_connection(data: dict[str, Any]) -> list[Deployment]:
    """Decode the `data` object of the deployments query."""
    return [Deployment.from_api_response(node) for node in _edges(data["deployments"])]
