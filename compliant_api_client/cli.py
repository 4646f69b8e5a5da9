#!/usr/bin/env python3
"""
CLI tool for inspecting and exercising the compliant API client.

Usage:
    compliant-api endpoints --method POST
    compliant-api path GET_WORKOUT --param id=42
    compliant-api validate GENERATE_WORKOUT --data '{"duration": 30, "difficulty": "beginner", "goals": "cardio"}'
    compliant-api transform --direction to_snake_case --data '{"fitnessLevel": "beginner"}'
    compliant-api request GET_WORKOUT --param id=42 --base-url https://example.com/wp-json/fitcopilot/v1
"""

import argparse
import asyncio
import json
import sys

from .client import CompliantApiClient, RequestOptions
from .config import settings
from .endpoints import default_registry
from .errors import ApiError
from .logging import configure_logging
from .models import ResourceType
from .transformer import Direction, transform_field_names
from .validator import SchemaValidator


def _parse_params(pairs: list[str] | None) -> dict[str, str]:
    params = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid parameter '{pair}', expected key=value")
        params[key] = value
    return params


def _load_json(raw: str | None):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON data: {e.msg}") from e


def list_endpoints(method: str | None, resource: str | None) -> int:
    """Print the endpoint catalog, optionally filtered."""
    if method:
        endpoints = default_registry.get_endpoints_by_method(method)
    else:
        endpoints = default_registry.get_all_endpoints()
    if resource:
        by_resource = default_registry.get_endpoints_by_resource(resource)
        endpoints = {k: v for k, v in endpoints.items() if k in by_resource}

    if not endpoints:
        print("No endpoints found.")
        return 0

    print(f"\n{'Name':<24} {'Method':<8} {'Path':<28} {'Wrapped':<10} {'Resource':<12}")
    print("-" * 86)
    for name, endpoint in endpoints.items():
        wrapped = "Yes" if endpoint.requires_wrapping else "No"
        resource_type = endpoint.resource_type.value if endpoint.resource_type else "-"
        print(f"{name:<24} {endpoint.method:<8} {endpoint.path:<28} {wrapped:<10} {resource_type:<12}")
    print()
    return 0


def show_path(name: str, params: dict[str, str]) -> int:
    """Print the path an endpoint resolves to."""
    try:
        print(default_registry.build_path(name, params))
        return 0
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


def validate_payload(name: str, data) -> int:
    """Validate a payload against an endpoint's request schema without sending it."""
    endpoint = default_registry.get_endpoint(name)
    if endpoint is None:
        print(f"Unknown endpoint: {name}", file=sys.stderr)
        return 1
    if not endpoint.request_schema:
        print(f"{name} has no request schema; nothing to validate.")
        return 0

    validator = SchemaValidator(settings.type_coercion)
    result = validator.validate_and_transform(data, endpoint.request_schema)
    if result.is_valid:
        print("Valid.")
        print(json.dumps(result.data, indent=2))
        return 0

    print(f"\n{len(result.errors)} validation error(s):", file=sys.stderr)
    for error in result.errors:
        print(f"  {error.field}: {error.message} [{error.code}]", file=sys.stderr)
    return 1


def transform_payload(direction: str, data) -> int:
    """Rename keys of a JSON document."""
    print(json.dumps(transform_field_names(data, Direction(direction)), indent=2))
    return 0


async def send_request(name: str, data, params: dict[str, str], base_url: str | None) -> int:
    """Send one request through the full pipeline and print the result."""
    config = settings.with_overrides(base_url=base_url) if base_url else settings
    async with CompliantApiClient(config) as client:
        try:
            result = await client.request(name, data, RequestOptions(path_params=params))
        except ApiError as e:
            print(f"Error: {json.dumps(e.to_dict(), indent=2, default=str)}", file=sys.stderr)
            return 1

    print(result.model_dump_json(indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Inspect and call the guideline-compliant workout API",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: from settings)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # List endpoints
    endpoints_parser = subparsers.add_parser("endpoints", help="List registered endpoints")
    endpoints_parser.add_argument("--method", help="Only endpoints using this HTTP method")
    endpoints_parser.add_argument(
        "--resource", choices=[r.value for r in ResourceType], help="Only endpoints for this resource type"
    )

    # Build path
    path_parser = subparsers.add_parser("path", help="Build an endpoint path")
    path_parser.add_argument("name", help="Endpoint name")
    path_parser.add_argument("--param", action="append", help="Path parameter as key=value")

    # Validate payload
    validate_parser = subparsers.add_parser("validate", help="Validate a request payload")
    validate_parser.add_argument("name", help="Endpoint name")
    validate_parser.add_argument("--data", required=True, help="JSON payload")

    # Transform keys
    transform_parser = subparsers.add_parser("transform", help="Rename JSON keys")
    transform_parser.add_argument("--direction", required=True, choices=[d.value for d in Direction])
    transform_parser.add_argument("--data", required=True, help="JSON document")

    # Send request
    request_parser = subparsers.add_parser("request", help="Send a request")
    request_parser.add_argument("name", help="Endpoint name")
    request_parser.add_argument("--data", help="JSON payload")
    request_parser.add_argument("--param", action="append", help="Path parameter as key=value")
    request_parser.add_argument("--base-url", help=f"Backend base URL (default: {settings.base_url})")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.log_level)

    try:
        if args.command == "endpoints":
            return list_endpoints(args.method, args.resource)
        elif args.command == "path":
            return show_path(args.name, _parse_params(args.param))
        elif args.command == "validate":
            return validate_payload(args.name, _load_json(args.data))
        elif args.command == "transform":
            return transform_payload(args.direction, _load_json(args.data))
        elif args.command == "request":
            return asyncio.run(
                send_request(args.name, _load_json(args.data), _parse_params(args.param), args.base_url)
            )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
