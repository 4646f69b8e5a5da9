"""
Schema validation engine.

Wraps ``jsonschema`` with the pieces the request pipeline needs on top of it:
type coercion of loosely-typed scalars (performed on a copy, never on the
caller's data), field-level error reporting, and a cache of compiled schemas
keyed by name.
"""

import copy
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema import ValidationError as SchemaViolation

from .config import TypeCoercionRules
from .models import BatchValidationResult, TransformResult, ValidationError, ValidationResult

logger = logging.getLogger(__name__)

# no leading zeros: "007" stays a string
_NUMERIC = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?$")

# required first, then per-property constraints, then unexpected keys
_KEYWORD_RANK = {"required": 0, "additionalProperties": 2}

format_checker = FormatChecker()


@format_checker.checks("date-time", raises=ValueError)
def _is_date_time(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    datetime.fromisoformat(value.replace("Z", "+00:00"))
    return True


@format_checker.checks("date", raises=ValueError)
def _is_date(value: Any) -> bool:
    if not isinstance(value, str):
        return True
    date.fromisoformat(value)
    return True


@dataclass(frozen=True)
class CompiledSchema:
    """A checked schema together with its ready-to-use validator."""

    name: str | None
    schema: Mapping[str, Any]
    validator: Draft202012Validator


def _declared_types(schema: Mapping[str, Any]) -> set[str]:
    declared = schema.get("type")
    if declared is None:
        return set()
    if isinstance(declared, str):
        return {declared}
    return set(declared)


def _strip_item_schemas(schema: Any) -> Any:
    """Copy of ``schema`` without any ``items`` keyword."""
    if isinstance(schema, dict):
        return {key: _strip_item_schemas(value) for key, value in schema.items() if key != "items"}
    if isinstance(schema, list):
        return [_strip_item_schemas(value) for value in schema]
    return schema


def format_field(path: Iterable[Any]) -> str:
    """``["workoutGoals", 0]`` -> ``workoutGoals[0]``; empty path -> ``root``."""
    field = ""
    for part in path:
        if isinstance(part, int):
            field += f"[{part}]"
        else:
            field = f"{field}.{part}" if field else str(part)
    return field or "root"


class SchemaValidator:
    """
    Validates values against declarative schemas.

    Args:
        coercion_rules: Which scalar conversions are allowed.
        enable_coercion: Master switch for all coercion rules.
    """

    def __init__(
        self,
        coercion_rules: TypeCoercionRules | None = None,
        enable_coercion: bool = True,
    ):
        self.coercion_rules = coercion_rules or TypeCoercionRules()
        self.enable_coercion = enable_coercion
        self._compiled: dict[str, CompiledSchema] = {}

    # ============================================
    # Compilation cache
    # ============================================

    def compile_schema(self, name: str, schema: Mapping[str, Any]) -> CompiledSchema:
        """
        Compile ``schema`` and remember it under ``name``.

        Compiling a name that is already cached returns the cached artifact.

        Raises:
            jsonschema.SchemaError: If the schema itself is malformed.
        """
        cached = self._compiled.get(name)
        if cached is not None:
            return cached

        compiled = self._compile(schema, name)
        # setdefault keeps the first artifact if two callers raced on the same name
        return self._compiled.setdefault(name, compiled)

    def get_compiled(self, name: str) -> CompiledSchema | None:
        return self._compiled.get(name)

    def cached_schemas(self) -> list[str]:
        return list(self._compiled)

    def clear_cache(self) -> None:
        self._compiled.clear()

    def _compile(self, schema: Mapping[str, Any], name: str | None = None) -> CompiledSchema:
        effective = dict(schema)
        if not self.coercion_rules.array_item_validation:
            effective = _strip_item_schemas(effective)
        Draft202012Validator.check_schema(effective)
        logger.debug("Compiled schema %s", name or "<inline>")
        return CompiledSchema(
            name=name,
            schema=effective,
            validator=Draft202012Validator(effective, format_checker=format_checker),
        )

    def _resolve(self, schema: Mapping[str, Any] | str) -> CompiledSchema | None:
        if isinstance(schema, str):
            return self._compiled.get(schema)
        return self._compile(schema)

    # ============================================
    # Validation
    # ============================================

    def validate(self, data: Any, schema: Mapping[str, Any] | str) -> ValidationResult:
        """
        Validate ``data`` against a schema object or the name of a compiled schema.

        Never raises for bad data; an unknown schema name produces a single
        ``schema_not_found`` error.
        """
        compiled = self._resolve(schema)
        if compiled is None:
            return ValidationResult(errors=[_schema_not_found(schema)])

        subject = self._coerce_copy(data, compiled.schema) if self.enable_coercion else data
        return ValidationResult(errors=self._collect_errors(compiled, subject))

    def validate_and_transform(self, data: Any, schema: Mapping[str, Any] | str) -> TransformResult:
        """Validate and, when valid, return the coerced copy of ``data``."""
        compiled = self._resolve(schema)
        if compiled is None:
            return TransformResult(errors=[_schema_not_found(schema)])

        if self.enable_coercion:
            subject = self._coerce_copy(data, compiled.schema)
        else:
            subject = copy.deepcopy(data)

        errors = self._collect_errors(compiled, subject)
        return TransformResult(errors=errors, data=None if errors else subject)

    def validate_batch(
        self, items: Iterable[Any], schema: Mapping[str, Any] | str
    ) -> list[BatchValidationResult]:
        results = []
        for index, item in enumerate(items):
            result = self.validate(item, schema)
            results.append(BatchValidationResult(errors=result.errors, index=index))
        return results

    def _collect_errors(self, compiled: CompiledSchema, subject: Any) -> list[ValidationError]:
        violations = sorted(
            compiled.validator.iter_errors(subject),
            key=lambda v: (_KEYWORD_RANK.get(v.validator, 1), [str(p) for p in v.absolute_path]),
        )

        errors: list[ValidationError] = []
        seen: set[tuple[Any, ...]] = set()
        for violation in violations:
            marker = (violation.validator, tuple(violation.absolute_path))
            if violation.validator in ("required", "additionalProperties"):
                # these report every affected key at once
                if marker in seen:
                    continue
                seen.add(marker)
            errors.extend(_convert(violation))

        if errors:
            logger.debug(
                "Validation of %s failed: %s",
                compiled.name or "<inline>",
                [error.field for error in errors],
            )
        return errors

    # ============================================
    # Coercion
    # ============================================

    def _coerce_copy(self, data: Any, schema: Mapping[str, Any]) -> Any:
        return self._coerce(copy.deepcopy(data), schema)

    def _coerce(self, value: Any, schema: Mapping[str, Any]) -> Any:
        if isinstance(value, dict):
            for key, subschema in schema.get("properties", {}).items():
                if key in value:
                    value[key] = self._coerce(value[key], subschema)
            return value

        if isinstance(value, list):
            items = schema.get("items")
            if isinstance(items, Mapping) and self.coercion_rules.array_item_validation:
                for index, item in enumerate(value):
                    value[index] = self._coerce(item, items)
            return value

        return self._coerce_scalar(value, schema)

    def _coerce_scalar(self, value: Any, schema: Mapping[str, Any]) -> Any:
        rules = self.coercion_rules
        if not isinstance(value, str):
            return value

        declared = _declared_types(schema)
        if value == "":
            # only where null is acceptable; minLength still sees "" elsewhere
            if rules.empty_string_to_null and (not declared or "null" in declared):
                return None
            return value

        if "string" in declared:
            return value

        if rules.numeric_strings and declared & {"number", "integer"} and _NUMERIC.match(value):
            if "." in value or "e" in value or "E" in value:
                number = float(value)
                return int(number) if "integer" in declared and number.is_integer() else number
            return int(value)

        if rules.boolean_strings and "boolean" in declared and value in ("true", "false"):
            return value == "true"

        return value


def _schema_not_found(schema: Any) -> ValidationError:
    return ValidationError(
        field="schema",
        message=f"Schema with ID '{schema}' not found",
        code="schema_not_found",
    )


def _join(parent: str, key: str) -> str:
    return key if parent == "root" else f"{parent}.{key}"


def _convert(violation: SchemaViolation) -> list[ValidationError]:
    """Translate one jsonschema violation into field-level errors."""
    keyword = violation.validator
    limit = violation.validator_value
    field = format_field(violation.absolute_path)

    if keyword == "required":
        instance = violation.instance if isinstance(violation.instance, dict) else {}
        return [
            ValidationError(field=_join(field, name), message=f"{name} is required", code="required")
            for name in limit
            if name not in instance
        ]

    if keyword == "additionalProperties":
        declared = violation.schema.get("properties", {})
        return [
            ValidationError(
                field=_join(field, key),
                message=f"{field} contains invalid property: {key}",
                code="additionalProperties",
            )
            for key in violation.instance
            if key not in declared
        ]

    if keyword == "type":
        expected = limit if isinstance(limit, str) else " or ".join(limit)
        message = f"{field} must be of type {expected}"
    elif keyword == "minimum":
        message = f"{field} must be at least {limit}"
    elif keyword == "maximum":
        message = f"{field} must be at most {limit}"
    elif keyword == "minLength":
        message = f"{field} must be at least {limit} characters long"
    elif keyword == "maxLength":
        message = f"{field} must be at most {limit} characters long"
    elif keyword == "minItems":
        message = f"{field} must contain at least {limit} items"
    elif keyword == "enum":
        message = f"{field} must be one of: {', '.join(str(option) for option in limit)}"
    elif keyword == "format":
        message = f"{field} must be a valid {limit}"
    else:
        message = violation.message

    return [ValidationError(field=field, message=message, code=keyword)]
