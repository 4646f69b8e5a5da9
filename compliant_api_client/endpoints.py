"""Static catalog of backend endpoints and the registry that serves it."""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import quote

from .errors import configuration_error
from .models import HttpMethod, ResourceType
from .schemas import (
    COMPLETION_REQUEST_SCHEMA,
    PROFILE_REQUEST_SCHEMA,
    WORKOUT_REQUEST_SCHEMA,
    WORKOUT_RESPONSE_SCHEMA,
)

_PLACEHOLDER = re.compile(r"\{[^{}]+\}")


@dataclass(frozen=True)
class EndpointDefinition:
    """
    Definition of one backend endpoint.

    Attributes:
        path: Path template relative to the base URL, with ``{param}`` placeholders.
        method: HTTP method.
        requires_auth: Attach the credential header.
        requires_wrapping: Nest the payload under ``resource_type``.
        resource_type: Wrapping key for mutation payloads.
        request_schema: Schema the caller-side payload must satisfy.
        response_schema: Schema the unwrapped, caller-side response data must satisfy.
        transform_field_names: Rename keys between camelCase and snake_case.
    """

    path: str
    method: HttpMethod
    requires_auth: bool = True
    requires_wrapping: bool = False
    resource_type: ResourceType | None = None
    request_schema: Mapping[str, Any] | None = None
    response_schema: Mapping[str, Any] | None = None
    transform_field_names: bool = True

    @property
    def placeholders(self) -> list[str]:
        return [token[1:-1] for token in _PLACEHOLDER.findall(self.path)]


API_ENDPOINTS: Mapping[str, EndpointDefinition] = MappingProxyType({
    # Workout generation
    "GENERATE_WORKOUT": EndpointDefinition(
        path="/generate",
        method="POST",
        requires_wrapping=True,
        resource_type=ResourceType.WORKOUT,
        request_schema=WORKOUT_REQUEST_SCHEMA,
        response_schema=WORKOUT_RESPONSE_SCHEMA,
    ),
    # Workout CRUD
    "GET_WORKOUTS": EndpointDefinition(path="/workouts", method="GET"),
    "GET_WORKOUT": EndpointDefinition(
        path="/workouts/{id}",
        method="GET",
        response_schema=WORKOUT_RESPONSE_SCHEMA,
    ),
    "CREATE_WORKOUT": EndpointDefinition(
        path="/workouts",
        method="POST",
        requires_wrapping=True,
        resource_type=ResourceType.WORKOUT,
        request_schema=WORKOUT_REQUEST_SCHEMA,
        response_schema=WORKOUT_RESPONSE_SCHEMA,
    ),
    "UPDATE_WORKOUT": EndpointDefinition(
        path="/workouts/{id}",
        method="PUT",
        requires_wrapping=True,
        resource_type=ResourceType.WORKOUT,
        request_schema=WORKOUT_REQUEST_SCHEMA,
        response_schema=WORKOUT_RESPONSE_SCHEMA,
    ),
    "DELETE_WORKOUT": EndpointDefinition(
        path="/workouts/{id}",
        method="DELETE",
        transform_field_names=False,
    ),
    "COMPLETE_WORKOUT": EndpointDefinition(
        path="/workouts/{id}/complete",
        method="POST",
        requires_wrapping=True,
        resource_type=ResourceType.COMPLETION,
        request_schema=COMPLETION_REQUEST_SCHEMA,
    ),
    # Profile
    "GET_PROFILE": EndpointDefinition(path="/profile", method="GET"),
    "UPDATE_PROFILE": EndpointDefinition(
        path="/profile",
        method="PUT",
        requires_wrapping=True,
        resource_type=ResourceType.PROFILE,
        request_schema=PROFILE_REQUEST_SCHEMA,
    ),
    # Version history
    "GET_WORKOUT_VERSIONS": EndpointDefinition(path="/workouts/{id}/versions", method="GET"),
})


class EndpointRegistry:
    """Read-only lookup over an endpoint catalog."""

    def __init__(self, endpoints: Mapping[str, EndpointDefinition] = API_ENDPOINTS):
        self._endpoints = MappingProxyType(dict(endpoints))

    def __contains__(self, name: str) -> bool:
        return name in self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    def get_endpoint(self, name: str) -> EndpointDefinition | None:
        return self._endpoints.get(name)

    def get_all_endpoints(self) -> dict[str, EndpointDefinition]:
        return dict(self._endpoints)

    def get_endpoints_by_method(self, method: str) -> dict[str, EndpointDefinition]:
        method = method.upper()
        return {name: ep for name, ep in self._endpoints.items() if ep.method == method}

    def get_endpoints_by_resource(self, resource_type: ResourceType | str) -> dict[str, EndpointDefinition]:
        resource_type = ResourceType(resource_type)
        return {name: ep for name, ep in self._endpoints.items() if ep.resource_type == resource_type}

    def requires_wrapping(self, name: str) -> bool:
        endpoint = self.get_endpoint(name)
        return endpoint.requires_wrapping if endpoint else False

    def get_resource_type(self, name: str) -> ResourceType | None:
        endpoint = self.get_endpoint(name)
        return endpoint.resource_type if endpoint else None

    def require(self, name: str) -> EndpointDefinition:
        """Like ``get_endpoint`` but raises for unknown names."""
        endpoint = self.get_endpoint(name)
        if endpoint is None:
            raise configuration_error(f"Unknown endpoint: {name}")
        return endpoint

    def build_path(self, name: str, params: Mapping[str, Any] | None = None) -> str:
        """
        Substitute ``{param}`` placeholders in an endpoint's path template.

        Values are percent-encoded, so they can never add path segments.

        Raises:
            ApiError: If the endpoint is unknown or any placeholder is left unresolved.
        """
        path = self.require(name).path

        for key, value in (params or {}).items():
            path = path.replace(f"{{{key}}}", quote(str(value), safe=""))

        remaining = _PLACEHOLDER.findall(path)
        if remaining:
            raise configuration_error(
                f"Missing path parameters: {', '.join(remaining)} for endpoint {name}"
            )
        return path


default_registry = EndpointRegistry()


def build_endpoint_path(name: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a path using the built-in catalog."""
    return default_registry.build_path(name, params)
