"""
Compliant API client.

Every call travels the same pipeline: resolve the endpoint, validate the payload,
rename fields to snake_case, wrap under the resource type, send with timeout and
retries, then unwrap the envelope and rename fields back to camelCase.

Usage:
    async with CompliantApiClient() as client:
        result = await client.generate_workout(
            {"duration": 30, "difficulty": "intermediate", "goals": "strength"}
        )
        workout = result.data
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from .config import ClientSettings, settings
from .context import get_credential
from .endpoints import EndpointDefinition, EndpointRegistry, default_registry
from .errors import ApiError, configuration_error
from .models import ApiCallResult, CallMetadata, ErrorCode, ErrorKind, error_map
from .transformer import FieldTransformer
from .validator import SchemaValidator
from .wrapper import RequestResponseTransformer, create_api_error_from_response

logger = logging.getLogger(__name__)

_QUERY_METHODS = ("GET", "DELETE")


@dataclass
class RequestOptions:
    """
    Per-call overrides; the client's settings are never modified by them.

    Attributes:
        path_params: Values for ``{param}`` placeholders in the endpoint path.
        headers: Extra headers, applied last.
        timeout: Deadline in seconds for the whole send phase, retries included.
        retries: Extra attempts after a transport failure or non-2xx response.
        skip_validation: Do not validate the request payload.
        skip_transformation: Do not rename fields in either direction.
        skip_wrapping: Send the payload without the resource-type key.
        validate_response: Validate response data against the endpoint's response schema.
        response_model: Pydantic model to parse the response data into.
        cancel_event: Setting this event aborts the request.
    """

    path_params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None
    timeout: float | None = None
    retries: int | None = None
    skip_validation: bool = False
    skip_transformation: bool = False
    skip_wrapping: bool = False
    validate_response: bool | None = None
    response_model: type[BaseModel] | None = None
    cancel_event: asyncio.Event | None = None


class CompliantApiClient:
    """
    Client that enforces the request/response contract for every backend call.

    Args:
        config: Client settings (defaults to the process-wide ``settings``)
        registry: Endpoint catalog to resolve names against
        transformer: Field transformer with the preserve list to apply
        validator: Schema validator (one is built from ``config`` if omitted)
        http_client: Transport; an owned ``httpx.AsyncClient`` is created if omitted
        credential_provider: Returns the credential to attach, read per request
        sleep: Coroutine used for backoff delays
    """

    def __init__(
        self,
        config: ClientSettings | None = None,
        *,
        registry: EndpointRegistry | None = None,
        transformer: FieldTransformer | None = None,
        validator: SchemaValidator | None = None,
        http_client: httpx.AsyncClient | None = None,
        credential_provider: Callable[[], str | None] = get_credential,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or settings
        self.registry = registry or default_registry
        self.transformer = RequestResponseTransformer(transformer or FieldTransformer.for_wordpress())
        self.validator = validator or SchemaValidator(self.config.type_coercion)
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._credential_provider = credential_provider
        self._sleep = sleep
        self.base_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def __aenter__(self) -> "CompliantApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    # ============================================
    # Pipeline
    # ============================================

    async def request(
        self,
        endpoint_name: str,
        data: Any = None,
        options: RequestOptions | None = None,
    ) -> ApiCallResult:
        """
        Run one call through the full pipeline.

        Raises:
            ApiError: For every failure; ``kind`` tells which stage detected it.
        """
        options = options or RequestOptions()
        started = time.perf_counter()

        try:
            endpoint = self.registry.require(endpoint_name)
            url = self._build_url(endpoint_name, options)

            payload = _to_plain(data)
            payload, validated = self._validate_request(endpoint_name, endpoint, payload, options)

            transform = self._should_transform(endpoint, options)
            payload = self._prepare_payload(endpoint, payload, transform, options)

            response, attempts = await self._send(endpoint_name, endpoint, url, payload, options)
            result_data, message = self._process_response(
                endpoint_name, endpoint, response, transform, options
            )
        except ApiError as exc:
            duration_ms = (time.perf_counter() - started) * 1000.0
            logger.error(
                "%s failed after %.1fms: [%s/%s] %s",
                endpoint_name,
                duration_ms,
                exc.kind.value,
                exc.code.value,
                exc.message,
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            "%s %s -> %s (%.1fms) attempts=%d",
            endpoint.method,
            url,
            response.status_code,
            duration_ms,
            attempts,
        )
        return ApiCallResult(
            data=result_data,
            success=True,
            message=message,
            metadata=CallMetadata(
                endpoint=endpoint_name,
                duration_ms=duration_ms,
                validated=validated,
                transformed=transform,
                attempts=attempts,
            ),
        )

    def _build_url(self, endpoint_name: str, options: RequestOptions) -> str:
        path = self.registry.build_path(endpoint_name, options.path_params)
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _validate_request(
        self,
        endpoint_name: str,
        endpoint: EndpointDefinition,
        payload: Any,
        options: RequestOptions,
    ) -> tuple[Any, bool]:
        if options.skip_validation or not self.config.validate_by_default or not endpoint.request_schema:
            return payload, False
        if payload is None and not endpoint.request_schema.get("required"):
            # optional body, e.g. completing a workout without details
            return payload, False

        schema_name = f"{endpoint_name}:request"
        self.validator.compile_schema(schema_name, endpoint.request_schema)
        result = self.validator.validate_and_transform(payload, schema_name)

        if not result.is_valid:
            raise ApiError(
                "Request validation failed",
                ErrorCode.VALIDATION_ERROR,
                {"validation_errors": error_map(result.errors)},
                kind=ErrorKind.VALIDATION,
            )
        return result.data, True

    def _should_transform(self, endpoint: EndpointDefinition, options: RequestOptions) -> bool:
        return (
            not options.skip_transformation
            and endpoint.transform_field_names
            and self.config.transform_field_names_by_default
        )

    def _prepare_payload(
        self,
        endpoint: EndpointDefinition,
        payload: Any,
        transform: bool,
        options: RequestOptions,
    ) -> Any:
        if payload is None:
            return None
        should_wrap = endpoint.requires_wrapping and not options.skip_wrapping
        return self.transformer.prepare_request(
            payload,
            resource_type=endpoint.resource_type,
            should_wrap=should_wrap,
            transform=transform,
        )

    def _build_headers(self, endpoint: EndpointDefinition, options: RequestOptions) -> dict[str, str]:
        headers = dict(self.base_headers)
        if endpoint.requires_auth:
            credential = self._credential_provider()
            if credential:
                headers[self.config.credential_header] = credential
        headers.update(options.headers or {})
        return headers

    async def _send(
        self,
        endpoint_name: str,
        endpoint: EndpointDefinition,
        url: str,
        payload: Any,
        options: RequestOptions,
    ) -> tuple[httpx.Response, int]:
        """Run the retry loop under a single deadline and the caller's cancel event."""
        timeout = options.timeout if options.timeout is not None else self.config.timeout
        retries = options.retries if options.retries is not None else self.config.retries

        request_kwargs: dict[str, Any] = {"headers": self._build_headers(endpoint, options)}
        if payload is not None:
            if endpoint.method in _QUERY_METHODS:
                if not isinstance(payload, Mapping):
                    raise configuration_error(
                        f"{endpoint.method} endpoint {endpoint_name} only accepts mapping payloads"
                    )
                request_kwargs["params"] = payload
            else:
                request_kwargs["json"] = payload

        attempt_loop = asyncio.ensure_future(
            self._send_with_retries(endpoint_name, endpoint.method, url, request_kwargs, retries, timeout)
        )
        waiters: set[asyncio.Future] = {attempt_loop}
        cancel_waiter = None
        if options.cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(options.cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [waiter for waiter in waiters if not waiter.done()]
            for waiter in pending:
                waiter.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if attempt_loop in done:
            return attempt_loop.result()

        if cancel_waiter is not None and cancel_waiter in done:
            raise ApiError(
                f"Request to {endpoint_name} was cancelled",
                ErrorCode.SERVER_ERROR,
                kind=ErrorKind.TIMEOUT,
            )
        raise ApiError(
            f"Request timeout after {timeout}s",
            ErrorCode.SERVER_ERROR,
            kind=ErrorKind.TIMEOUT,
        )

    async def _send_with_retries(
        self,
        endpoint_name: str,
        method: str,
        url: str,
        request_kwargs: dict[str, Any],
        retries: int,
        timeout: float,
    ) -> tuple[httpx.Response, int]:
        max_attempts = retries + 1
        last_response: httpx.Response | None = None
        last_error: httpx.RequestError | None = None

        for attempt in range(max_attempts):
            if attempt:
                delay = self.config.backoff_factor * 2 ** (attempt - 1)
                logger.warning(
                    "Retrying %s in %.1fs (attempt %d of %d)",
                    endpoint_name,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                await self._sleep(delay)

            try:
                response = await self._http.request(method, url, timeout=timeout, **request_kwargs)
            except httpx.TimeoutException as exc:
                raise ApiError(
                    f"Request timeout after {timeout}s",
                    ErrorCode.SERVER_ERROR,
                    kind=ErrorKind.TIMEOUT,
                ) from exc
            except httpx.RequestError as exc:
                logger.warning("Transport error on %s: %s", endpoint_name, exc)
                last_response, last_error = None, exc
                continue

            if response.is_success:
                return response, attempt + 1

            logger.warning("%s returned HTTP %s", endpoint_name, response.status_code)
            last_response, last_error = response, None

        if last_response is not None:
            raise create_api_error_from_response(
                last_response.status_code,
                last_response.text,
                _json_or_none(last_response),
            )
        raise ApiError(
            f"Network error: Unable to reach server after {max_attempts} attempts",
            ErrorCode.SERVER_ERROR,
            {"attempts": max_attempts, "detail": str(last_error)},
            kind=ErrorKind.TRANSPORT,
        ) from last_error

    def _process_response(
        self,
        endpoint_name: str,
        endpoint: EndpointDefinition,
        response: httpx.Response,
        transform: bool,
        options: RequestOptions,
    ) -> tuple[Any, str]:
        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response from server",
                ErrorCode.SERVER_ERROR,
                kind=ErrorKind.TRANSPORT,
                status=response.status_code,
            ) from exc

        data = self.transformer.process_response(body, transform=transform)
        message = body.get("message", "") if isinstance(body, Mapping) else ""

        validate_response = (
            options.validate_response
            if options.validate_response is not None
            else self.config.validate_responses
        )
        if validate_response and endpoint.response_schema:
            schema_name = f"{endpoint_name}:response"
            self.validator.compile_schema(schema_name, endpoint.response_schema)
            result = self.validator.validate(data, schema_name)
            if not result.is_valid:
                raise ApiError(
                    "Response validation failed",
                    ErrorCode.VALIDATION_ERROR,
                    {"validation_errors": error_map(result.errors)},
                    kind=ErrorKind.STRUCTURAL,
                )

        if options.response_model is not None and data is not None:
            data = _parse_model(options.response_model, data)

        return data, message

    # ============================================
    # Convenience methods
    # ============================================

    async def generate_workout(self, data: Any, **options: Any) -> ApiCallResult:
        return await self.request("GENERATE_WORKOUT", data, RequestOptions(**options))

    async def get_workouts(self, **options: Any) -> ApiCallResult:
        return await self.request("GET_WORKOUTS", None, RequestOptions(**options))

    async def get_workout(self, workout_id: int | str, **options: Any) -> ApiCallResult:
        return await self.request("GET_WORKOUT", None, RequestOptions(path_params={"id": workout_id}, **options))

    async def create_workout(self, data: Any, **options: Any) -> ApiCallResult:
        return await self.request("CREATE_WORKOUT", data, RequestOptions(**options))

    async def update_workout(self, workout_id: int | str, data: Any, **options: Any) -> ApiCallResult:
        return await self.request("UPDATE_WORKOUT", data, RequestOptions(path_params={"id": workout_id}, **options))

    async def delete_workout(self, workout_id: int | str, **options: Any) -> ApiCallResult:
        return await self.request("DELETE_WORKOUT", None, RequestOptions(path_params={"id": workout_id}, **options))

    async def complete_workout(self, workout_id: int | str, data: Any = None, **options: Any) -> ApiCallResult:
        return await self.request("COMPLETE_WORKOUT", data, RequestOptions(path_params={"id": workout_id}, **options))

    async def get_profile(self, **options: Any) -> ApiCallResult:
        return await self.request("GET_PROFILE", None, RequestOptions(**options))

    async def update_profile(self, data: Any, **options: Any) -> ApiCallResult:
        return await self.request("UPDATE_PROFILE", data, RequestOptions(**options))

    async def get_workout_versions(self, workout_id: int | str, **options: Any) -> ApiCallResult:
        return await self.request(
            "GET_WORKOUT_VERSIONS", None, RequestOptions(path_params={"id": workout_id}, **options)
        )


def create_wordpress_client(config: ClientSettings | None = None, **kwargs: Any) -> CompliantApiClient:
    """Client preserving WordPress, database and API metadata keys."""
    return CompliantApiClient(config, transformer=FieldTransformer.for_wordpress(), **kwargs)


def _to_plain(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return data


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _parse_model(model: type[BaseModel], data: Any) -> Any:
    try:
        if isinstance(data, list):
            return [model.model_validate(item) for item in data]
        return model.model_validate(data)
    except ModelValidationError as exc:
        raise ApiError(
            f"Response did not match {model.__name__}",
            ErrorCode.VALIDATION_ERROR,
            {"detail": str(exc)},
            kind=ErrorKind.STRUCTURAL,
        ) from exc
