"""
Declarative payload schemas.

Request and response schemas describe the caller-side (camelCase) shape: requests
are validated before field renaming and responses after it.
"""

from types import MappingProxyType

DIFFICULTY_LEVELS = ["beginner", "intermediate", "advanced"]

WORKOUT_REQUEST_SCHEMA = {
    "type": "object",
    "required": ["duration", "difficulty", "goals"],
    "properties": {
        "duration": {
            "type": "number",
            "minimum": 10,
            "maximum": 120,
            "description": "Workout duration in minutes",
        },
        "difficulty": {
            "type": "string",
            "enum": DIFFICULTY_LEVELS,
            "description": "Difficulty level",
        },
        "equipment": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Available equipment",
        },
        "goals": {
            "type": "string",
            "minLength": 1,
            "description": "Workout goals",
        },
        "restrictions": {
            "type": "string",
            "description": "Physical restrictions or limitations",
        },
        "preferences": {
            "type": "string",
            "description": "Additional preferences",
        },
    },
    "additionalProperties": False,
}

WORKOUT_RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["id", "title", "date", "duration", "difficulty"],
    "properties": {
        "id": {"type": "number"},
        "title": {"type": "string", "minLength": 1},
        "date": {"type": "string", "format": "date-time"},
        "duration": {"type": "number", "minimum": 1},
        "difficulty": {"type": "string", "enum": DIFFICULTY_LEVELS},
        "content": {"type": "string"},
    },
    "additionalProperties": False,
}

PROFILE_REQUEST_SCHEMA = {
    "type": "object",
    "required": ["fitnessLevel", "workoutGoals", "equipmentAvailable", "workoutFrequency"],
    "properties": {
        "fitnessLevel": {"type": "string", "enum": DIFFICULTY_LEVELS},
        "workoutGoals": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 1,
        },
        "equipmentAvailable": {"type": "string", "minLength": 1},
        "workoutFrequency": {"type": "number", "minimum": 1, "maximum": 7},
        "workoutDuration": {"type": "number", "minimum": 10, "maximum": 120},
        "preferences": {
            "type": "object",
            "properties": {
                "darkMode": {"type": "boolean"},
                "metrics": {"type": "string", "enum": ["imperial", "metric"]},
            },
            "required": ["darkMode", "metrics"],
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

COMPLETION_REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "completedAt": {"type": "string", "format": "date-time"},
        "durationMinutes": {"type": "number", "minimum": 1},
        "rating": {"type": "number", "minimum": 1, "maximum": 5},
        "notes": {"type": "string", "maxLength": 1000},
    },
    "additionalProperties": False,
}

SCHEMAS = MappingProxyType({
    "workout_request": WORKOUT_REQUEST_SCHEMA,
    "workout_response": WORKOUT_RESPONSE_SCHEMA,
    "profile_request": PROFILE_REQUEST_SCHEMA,
    "completion_request": COMPLETION_REQUEST_SCHEMA,
})
