"""
Field name transformation between camelCase (callers) and snake_case (backend).

Direction is always explicit; nothing here tries to guess the casing of its input.
"""

import re
from enum import Enum
from typing import Any, Iterable

_UPPER = re.compile(r"[A-Z]")
_UNDERSCORE_LOWER = re.compile(r"_([a-z])")


class Direction(str, Enum):
    TO_SNAKE_CASE = "to_snake_case"
    TO_CAMEL_CASE = "to_camel_case"


class PreserveSet(str, Enum):
    """Named groups of keys that must never be renamed."""
    WORDPRESS = "WORDPRESS"
    DATABASE = "DATABASE"
    API_METADATA = "API_METADATA"
    EXTERNAL_APIS = "EXTERNAL_APIS"


PRESERVE_FIELDS: dict[PreserveSet, frozenset[str]] = {
    PreserveSet.WORDPRESS: frozenset(
        {"post_id", "user_id", "post_type", "post_status", "meta_key", "meta_value"}
    ),
    PreserveSet.DATABASE: frozenset({"created_at", "updated_at", "deleted_at", "id"}),
    PreserveSet.API_METADATA: frozenset({"_links", "_embedded", "_metadata"}),
    PreserveSet.EXTERNAL_APIS: frozenset(
        {"client_id", "client_secret", "access_token", "refresh_token"}
    ),
}


def to_snake_case(key: str) -> str:
    """``workoutGoals`` -> ``workout_goals``; a leading capital is only lowercased."""
    return _UPPER.sub(
        lambda match: match.group(0).lower() if match.start() == 0 else f"_{match.group(0).lower()}",
        key,
    )


def to_camel_case(key: str) -> str:
    """``workout_goals`` -> ``workoutGoals``."""
    return _UNDERSCORE_LOWER.sub(lambda match: match.group(1).upper(), key)


_RENAMERS = {
    Direction.TO_SNAKE_CASE: to_snake_case,
    Direction.TO_CAMEL_CASE: to_camel_case,
}


def combine_preserve_fields(*sets: PreserveSet | str) -> frozenset[str]:
    """Union of the named preserve sets."""
    combined: frozenset[str] = frozenset()
    for name in sets:
        combined |= PRESERVE_FIELDS[PreserveSet(name)]
    return combined


def transform_field_names(
    value: Any,
    direction: Direction | str,
    preserve_fields: Iterable[str] = (),
    deep: bool = True,
) -> Any:
    """
    Rename the keys of ``value`` in the given direction.

    Lists and tuples are mapped element-wise and only ``dict`` instances have
    their keys renamed; everything else is returned as is. Nested containers are
    visited only when ``deep`` is true. The input is never modified, and
    self-referencing structures produce equally self-referencing output.
    """
    rename = _RENAMERS[Direction(direction)]
    preserved = frozenset(preserve_fields)
    memo: dict[int, Any] = {}

    def convert(node: Any, top: bool) -> Any:
        if not isinstance(node, (dict, list, tuple)):
            return node
        if id(node) in memo:
            return memo[id(node)]
        if not top and not deep:
            return node

        if isinstance(node, dict):
            result: dict[str, Any] = {}
            memo[id(node)] = result
            for key, item in node.items():
                new_key = key if key in preserved or not isinstance(key, str) else rename(key)
                result[new_key] = convert(item, False)
            return result

        if isinstance(node, list):
            items: list[Any] = []
            memo[id(node)] = items
            # array elements are treated like top-level values
            items.extend(convert(item, top) for item in node)
            return items

        return tuple(convert(item, top) for item in node)

    return convert(value, True)


class FieldTransformer:
    """Renames keys at the client/backend boundary with a fixed preserve list."""

    def __init__(self, preserve_fields: Iterable[str] = ()):
        self.preserve_fields = frozenset(preserve_fields)

    def __repr__(self) -> str:
        return f"FieldTransformer(preserve_fields={sorted(self.preserve_fields)!r})"

    def to_wire(self, data: Any) -> Any:
        return transform_field_names(data, Direction.TO_SNAKE_CASE, self.preserve_fields)

    def from_wire(self, data: Any) -> Any:
        return transform_field_names(data, Direction.TO_CAMEL_CASE, self.preserve_fields)

    def with_preserve_fields(self, fields: Iterable[str]) -> "FieldTransformer":
        return FieldTransformer(self.preserve_fields | frozenset(fields))

    @classmethod
    def for_wordpress(cls) -> "FieldTransformer":
        return cls(
            combine_preserve_fields(
                PreserveSet.WORDPRESS, PreserveSet.DATABASE, PreserveSet.API_METADATA
            )
        )
