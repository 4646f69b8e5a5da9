"""
Request wrapping and response unwrapping.

Outgoing mutations are nested under their resource type (``{"workout": {...}}``)
and incoming bodies are checked against the ``{success, data, message, code?}``
envelope before their data is handed back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import (
    DEFAULT_ERROR_MESSAGES,
    HTTP_STATUS_TO_ERROR_CODE,
    ApiError,
    configuration_error,
    structural_error,
)
from .models import ApiResponse, ErrorCode, ErrorKind, ResourceType
from .transformer import Direction, FieldTransformer, transform_field_names

logger = logging.getLogger(__name__)

_ERROR_CODES = {code.value for code in ErrorCode}


@dataclass
class RequestWrapperConfig:
    resource_type: ResourceType | str
    transform_field_names: bool = True
    preserve_fields: frozenset[str] = field(default_factory=frozenset)


@dataclass
class ResponseUnwrapperConfig:
    transform_field_names: bool = True
    preserve_fields: frozenset[str] = field(default_factory=frozenset)
    validate_structure: bool = True


# ============================================
# Envelope type guards
# ============================================

def is_api_response(response: Any) -> bool:
    return (
        isinstance(response, Mapping)
        and isinstance(response.get("success"), bool)
        and isinstance(response.get("message"), str)
        and (response["success"] is False or "data" in response)
    )


def is_api_error_response(response: Any) -> bool:
    return (
        is_api_response(response)
        and response["success"] is False
        and isinstance(response.get("code"), str)
    )


def is_api_success_response(response: Any) -> bool:
    return is_api_response(response) and response["success"] is True and "data" in response


# ============================================
# Requests
# ============================================

def _resource_key(resource_type: ResourceType | str) -> str:
    return resource_type.value if isinstance(resource_type, ResourceType) else str(resource_type)


def wrap_request(data: Any, config: RequestWrapperConfig) -> dict[str, Any]:
    """Nest ``data`` under its resource type, renaming keys to snake_case first if asked."""
    if config.transform_field_names:
        data = transform_field_names(data, Direction.TO_SNAKE_CASE, config.preserve_fields)
    return {_resource_key(config.resource_type): data}


def unwrap_request(wrapped: Mapping[str, Any], expected_type: ResourceType | str) -> Any:
    """
    Extract the payload nested under ``expected_type``.

    Raises:
        ApiError: If the wrapped body has no such key.
    """
    key = _resource_key(expected_type)
    if not isinstance(wrapped, Mapping) or wrapped.get(key) is None:
        raise configuration_error(f"Expected resource type '{key}' not found in request")
    return wrapped[key]


# ============================================
# Responses
# ============================================

def wrap_response(
    data: Any,
    success: bool,
    message: str,
    code: ErrorCode | str | None = None,
) -> dict[str, Any]:
    """Build an envelope; error envelopes always carry a null ``data``."""
    if not success:
        envelope = ApiResponse(success=False, data=None, message=message, code=code)
    else:
        envelope = ApiResponse(success=True, data=data, message=message)
    payload = envelope.model_dump(mode="json")
    if payload["code"] is None:
        del payload["code"]
    return payload


def unwrap_response(raw: Any, config: ResponseUnwrapperConfig | None = None) -> Any:
    """
    Return the data of a success envelope or raise the error an error envelope describes.

    Raises:
        ApiError: ``kind=api`` for declared errors, ``kind=structural`` when the
            body breaks the envelope contract.
    """
    config = config or ResponseUnwrapperConfig()

    if config.validate_structure and not is_api_response(raw):
        raise structural_error(
            "Invalid API response format: missing required fields (success, data, message)"
        )

    if is_api_error_response(raw):
        code = raw["code"]
        if code not in _ERROR_CODES:
            raise structural_error(f"Invalid API response: unrecognized error code '{code}'")
        raise ApiError(raw["message"], code, raw.get("data"), kind=ErrorKind.API)

    if is_api_success_response(raw):
        data = raw["data"]
        if config.transform_field_names and data is not None:
            return transform_field_names(data, Direction.TO_CAMEL_CASE, config.preserve_fields)
        return data

    raise structural_error("Invalid API response: neither success nor error format")


def create_api_error_from_response(
    status: int,
    text: str,
    json_body: Any | None = None,
) -> ApiError:
    """
    Build the error for a non-2xx HTTP response.

    A structured error envelope in the body wins over the status-derived default.
    """
    if is_api_error_response(json_body) and json_body["code"] in _ERROR_CODES:
        return ApiError(
            json_body["message"],
            json_body["code"],
            json_body.get("data"),
            kind=ErrorKind.API,
            status=status,
        )

    code = HTTP_STATUS_TO_ERROR_CODE.get(status, ErrorCode.SERVER_ERROR)
    message = DEFAULT_ERROR_MESSAGES.get(status, f"HTTP {status}: {text}")
    return ApiError(message, code, kind=ErrorKind.TRANSPORT, status=status)


class RequestResponseTransformer:
    """Applies field renaming and (un)wrapping with one shared FieldTransformer."""

    def __init__(self, field_transformer: FieldTransformer | None = None):
        self.field_transformer = field_transformer or FieldTransformer.for_wordpress()

    def prepare_request(
        self,
        data: Any,
        resource_type: ResourceType | str | None = None,
        should_wrap: bool = True,
        transform: bool = True,
    ) -> Any:
        if transform:
            data = self.field_transformer.to_wire(data)
        if should_wrap and resource_type:
            return wrap_request(data, RequestWrapperConfig(resource_type, transform_field_names=False))
        return data

    def process_response(self, raw: Any, validate_structure: bool = True, transform: bool = True) -> Any:
        return unwrap_response(
            raw,
            ResponseUnwrapperConfig(
                transform_field_names=transform,
                preserve_fields=self.field_transformer.preserve_fields,
                validate_structure=validate_structure,
            ),
        )
