"""Client library enforcing the API design guidelines request/response contract."""

from .client import CompliantApiClient, RequestOptions, create_wordpress_client
from .config import ClientSettings, TypeCoercionRules, settings
from .context import get_credential, set_credential
from .endpoints import API_ENDPOINTS, EndpointDefinition, EndpointRegistry, build_endpoint_path
from .errors import HTTP_STATUS_TO_ERROR_CODE, ApiError
from .logging import configure_logging
from .models import (
    ApiCallResult,
    ApiResponse,
    ErrorCode,
    ErrorKind,
    ResourceType,
    ValidationError,
    ValidationResult,
)
from .transformer import (
    Direction,
    FieldTransformer,
    PreserveSet,
    combine_preserve_fields,
    to_camel_case,
    to_snake_case,
    transform_field_names,
)
from .validator import SchemaValidator
from .wrapper import (
    create_api_error_from_response,
    unwrap_request,
    unwrap_response,
    wrap_request,
    wrap_response,
)

__version__ = "1.0.0"


__all__ = [
    "CompliantApiClient",
    "RequestOptions",
    "create_wordpress_client",
    "ClientSettings",
    "TypeCoercionRules",
    "settings",
    "get_credential",
    "set_credential",
    "API_ENDPOINTS",
    "EndpointDefinition",
    "EndpointRegistry",
    "build_endpoint_path",
    "HTTP_STATUS_TO_ERROR_CODE",
    "ApiError",
    "configure_logging",
    "ApiCallResult",
    "ApiResponse",
    "ErrorCode",
    "ErrorKind",
    "ResourceType",
    "ValidationError",
    "ValidationResult",
    "Direction",
    "FieldTransformer",
    "PreserveSet",
    "combine_preserve_fields",
    "to_camel_case",
    "to_snake_case",
    "transform_field_names",
    "SchemaValidator",
    "create_api_error_from_response",
    "unwrap_request",
    "unwrap_response",
    "wrap_request",
    "wrap_response",
]
