"""Tests for schema validation and type coercion."""

import copy

import pytest
from jsonschema import SchemaError

from compliant_api_client import SchemaValidator, TypeCoercionRules
from compliant_api_client.schemas import (
    PROFILE_REQUEST_SCHEMA,
    WORKOUT_REQUEST_SCHEMA,
    WORKOUT_RESPONSE_SCHEMA,
)


@pytest.fixture
def validator():
    return SchemaValidator()


def _fields(result):
    return [error.field for error in result.errors]


def test_valid_workout_request(validator):
    result = validator.validate(
        {"duration": 30, "difficulty": "intermediate", "goals": "strength"},
        WORKOUT_REQUEST_SCHEMA,
    )

    assert result.is_valid
    assert result.errors == []


def test_missing_required_fields_are_named(validator):
    result = validator.validate({"duration": 30}, WORKOUT_REQUEST_SCHEMA)

    assert not result.is_valid
    assert set(_fields(result)) == {"difficulty", "goals"}
    assert {error.code for error in result.errors} == {"required"}


def test_constraint_errors(validator):
    result = validator.validate(
        {"duration": 5, "difficulty": "expert", "goals": "x", "equipment": "rope"},
        WORKOUT_REQUEST_SCHEMA,
    )

    by_field = {error.field: error for error in result.errors}
    assert by_field["duration"].code == "minimum"
    assert by_field["duration"].message == "duration must be at least 10"
    assert by_field["difficulty"].code == "enum"
    assert "beginner, intermediate, advanced" in by_field["difficulty"].message
    assert by_field["equipment"].code == "type"


def test_additional_properties_reported_per_key(validator):
    result = validator.validate(
        {"duration": 30, "difficulty": "beginner", "goals": "x", "mood": "ok", "color": "red"},
        WORKOUT_REQUEST_SCHEMA,
    )

    assert sorted(_fields(result)) == ["color", "mood"]
    assert {error.code for error in result.errors} == {"additionalProperties"}


def test_error_order_required_then_properties_then_additional(validator):
    result = validator.validate({"duration": 500, "extra": 1}, WORKOUT_REQUEST_SCHEMA)

    codes = [error.code for error in result.errors]
    assert codes[0] == "required"
    assert codes.index("maximum") < codes.index("additionalProperties")


def test_nested_object_paths(validator):
    result = validator.validate(
        {
            "fitnessLevel": "beginner",
            "workoutGoals": ["strength", 3],
            "equipmentAvailable": "dumbbells",
            "workoutFrequency": 3,
            "preferences": {"darkMode": "maybe"},
        },
        PROFILE_REQUEST_SCHEMA,
    )

    fields = _fields(result)
    assert "preferences.metrics" in fields
    assert "preferences.darkMode" in fields
    assert "workoutGoals[1]" in fields


def test_min_items(validator):
    result = validator.validate(
        {"fitnessLevel": "beginner", "workoutGoals": [], "equipmentAvailable": "none", "workoutFrequency": 2},
        PROFILE_REQUEST_SCHEMA,
    )

    assert [(e.field, e.code) for e in result.errors] == [("workoutGoals", "minItems")]


def test_date_time_format(validator):
    good = {"id": 1, "title": "A", "date": "2024-05-01T10:00:00Z", "duration": 30, "difficulty": "beginner"}
    bad = dict(good, date="yesterday")

    assert validator.validate(good, WORKOUT_RESPONSE_SCHEMA).is_valid
    result = validator.validate(bad, WORKOUT_RESPONSE_SCHEMA)
    assert [(e.field, e.code) for e in result.errors] == [("date", "format")]


def test_root_type_error(validator):
    result = validator.validate(None, WORKOUT_REQUEST_SCHEMA)

    assert [(e.field, e.code) for e in result.errors] == [("root", "type")]


def test_coercion_returns_converted_copy(validator):
    data = {"duration": "45", "difficulty": "advanced", "goals": "endurance"}
    original = copy.deepcopy(data)

    result = validator.validate_and_transform(data, WORKOUT_REQUEST_SCHEMA)

    assert result.is_valid
    assert result.data == {"duration": 45, "difficulty": "advanced", "goals": "endurance"}
    assert result.data is not data
    assert data == original


def test_boolean_and_float_coercion(validator):
    data = {
        "fitnessLevel": "beginner",
        "workoutGoals": ["mobility"],
        "equipmentAvailable": "mat",
        "workoutFrequency": "2.5",
        "preferences": {"darkMode": "true", "metrics": "metric"},
    }

    result = validator.validate_and_transform(data, PROFILE_REQUEST_SCHEMA)

    assert result.is_valid
    assert result.data["workoutFrequency"] == 2.5
    assert result.data["preferences"]["darkMode"] is True
    assert data["preferences"]["darkMode"] == "true"


def test_non_numeric_string_is_not_coerced(validator):
    result = validator.validate_and_transform(
        {"duration": "thirty", "difficulty": "beginner", "goals": "x"}, WORKOUT_REQUEST_SCHEMA
    )

    assert not result.is_valid
    assert result.data is None
    assert [(e.field, e.code) for e in result.errors] == [("duration", "type")]


def test_empty_string_becomes_null():
    validator = SchemaValidator()
    result = validator.validate_and_transform(
        {"duration": 30, "difficulty": "beginner", "goals": "x", "restrictions": ""},
        {"type": "object", "properties": {"restrictions": {"type": ["string", "null"]}}},
    )

    assert result.is_valid
    assert result.data["restrictions"] is None


def test_empty_optional_string_is_kept():
    data = {"duration": 30, "difficulty": "beginner", "goals": "x", "restrictions": ""}

    result = SchemaValidator().validate_and_transform(data, WORKOUT_REQUEST_SCHEMA)

    assert result.is_valid
    assert result.data["restrictions"] == ""


def test_empty_required_string_fails_min_length(validator):
    result = validator.validate({"duration": 30, "difficulty": "beginner", "goals": ""}, WORKOUT_REQUEST_SCHEMA)

    assert [(e.field, e.code) for e in result.errors] == [("goals", "minLength")]


@pytest.mark.parametrize("raw", ["007", "-01", "00.5"])
def test_leading_zeros_are_not_coerced(validator, raw):
    result = validator.validate_and_transform(
        {"duration": raw, "difficulty": "beginner", "goals": "x"}, WORKOUT_REQUEST_SCHEMA
    )

    assert [(e.field, e.code) for e in result.errors] == [("duration", "type")]


def test_zero_point_strings_are_coerced(validator):
    result = validator.validate_and_transform(
        {"fitnessLevel": "beginner", "workoutGoals": ["x"], "equipmentAvailable": "mat", "workoutFrequency": "0.5"},
        PROFILE_REQUEST_SCHEMA,
    )

    assert result.data is None
    assert [(e.field, e.code) for e in result.errors] == [("workoutFrequency", "minimum")]


def test_coercion_can_be_disabled():
    validator = SchemaValidator(enable_coercion=False)

    result = validator.validate({"duration": "45", "difficulty": "beginner", "goals": "x"}, WORKOUT_REQUEST_SCHEMA)

    assert [(e.field, e.code) for e in result.errors] == [("duration", "type")]


def test_array_item_validation_rule():
    validator = SchemaValidator(TypeCoercionRules(array_item_validation=False))

    result = validator.validate(
        {"duration": 30, "difficulty": "beginner", "goals": "x", "equipment": [1, 2]},
        WORKOUT_REQUEST_SCHEMA,
    )

    assert result.is_valid


def test_unknown_schema_name_is_a_result_not_an_exception(validator):
    result = validator.validate({"a": 1}, "missing_schema")

    assert not result.is_valid
    assert len(result.errors) == 1
    assert result.errors[0].code == "schema_not_found"


def test_compile_schema_is_memoized(validator):
    first = validator.compile_schema("workout", WORKOUT_REQUEST_SCHEMA)
    second = validator.compile_schema("workout", {"type": "string"})

    assert first is second
    assert validator.cached_schemas() == ["workout"]
    assert validator.validate({"duration": 30, "difficulty": "beginner", "goals": "x"}, "workout").is_valid


def test_clear_cache_is_idempotent(validator):
    validator.compile_schema("workout", WORKOUT_REQUEST_SCHEMA)

    validator.clear_cache()
    validator.clear_cache()

    assert validator.cached_schemas() == []
    assert validator.validate({}, "workout").errors[0].code == "schema_not_found"


def test_malformed_schema_raises(validator):
    with pytest.raises(SchemaError):
        validator.compile_schema("broken", {"type": 12})


def test_validate_batch(validator):
    results = validator.validate_batch(
        [{"duration": 30, "difficulty": "beginner", "goals": "x"}, {"duration": 30}],
        WORKOUT_REQUEST_SCHEMA,
    )

    assert [(r.index, r.is_valid) for r in results] == [(0, True), (1, False)]


def test_error_map(validator):
    result = validator.validate({"duration": 5, "difficulty": "expert", "goals": "x"}, WORKOUT_REQUEST_SCHEMA)

    assert set(result.error_map()) == {"duration", "difficulty"}
