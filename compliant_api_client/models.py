"""Pydantic models shared by every stage of the request pipeline."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


class ResourceType(str, Enum):
    """Wrapping key (and payload family) of a mutation request."""
    WORKOUT = "workout"
    PROFILE = "profile"
    COMPLETION = "completion"
    USER = "user"


class ErrorCode(str, Enum):
    """Closed set of error codes a response envelope may carry."""
    INVALID_PARAMS = "invalid_params"
    VALIDATION_ERROR = "validation_error"
    NOT_AUTHENTICATED = "not_authenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"


class ErrorKind(str, Enum):
    """Where in the pipeline an error was detected."""
    VALIDATION = "validation"
    STRUCTURAL = "structural"
    API = "api"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"


HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


# ============================================
# Envelope
# ============================================

class ApiResponse(BaseModel):
    """Response envelope every backend endpoint answers with."""

    success: bool
    data: Any = None
    message: str
    code: ErrorCode | None = Field(None, description="Only present for error responses")

    @model_validator(mode="after")
    def _check_error_shape(self) -> "ApiResponse":
        if not self.success:
            if self.code is None:
                raise ValueError("error responses must carry a code")
            if self.data is not None and not isinstance(self.data, dict):
                raise ValueError("error response data must be null or an object")
        return self


# ============================================
# Validation
# ============================================

class ValidationError(BaseModel):
    """A single failed schema constraint."""
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    code: str


def error_map(errors: list[ValidationError]) -> dict[str, str]:
    """Field -> message; the first message reported for a field wins."""
    mapping: dict[str, str] = {}
    for error in errors:
        mapping.setdefault(error.field, error.message)
    return mapping


class ValidationResult(BaseModel):
    """Outcome of validating one value against one schema."""
    model_config = ConfigDict(frozen=True)

    errors: list[ValidationError] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_map(self) -> dict[str, str]:
        return error_map(self.errors)


class BatchValidationResult(ValidationResult):
    index: int


class TransformResult(BaseModel):
    """Outcome of ``validate_and_transform``: the coerced copy when valid."""
    model_config = ConfigDict(frozen=True)

    errors: list[ValidationError] = Field(default_factory=list)
    data: Any = None

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors


# ============================================
# Call results
# ============================================

class CallMetadata(BaseModel):
    endpoint: str
    duration_ms: float
    validated: bool
    transformed: bool
    attempts: int = 1


class ApiCallResult(BaseModel):
    """What ``CompliantApiClient.request`` hands back on success."""

    data: Any = None
    success: bool = True
    message: str
    metadata: CallMetadata


# ============================================
# Resource payloads
# ============================================

Difficulty = Literal["beginner", "intermediate", "advanced"]


class ResourceModel(BaseModel):
    """Base for resource payloads; callers see camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkoutRequest(ResourceModel):
    duration: int = Field(..., ge=10, le=120, description="Workout duration in minutes")
    difficulty: Difficulty
    goals: str = Field(..., min_length=1)
    equipment: list[str] | None = None
    restrictions: str | None = None
    preferences: str | None = None


class WorkoutResponse(ResourceModel):
    id: int
    title: str
    date: str
    duration: int
    difficulty: Difficulty
    content: str | None = None


class ProfilePreferences(ResourceModel):
    dark_mode: bool
    metrics: Literal["imperial", "metric"]


class ProfileRequest(ResourceModel):
    fitness_level: Difficulty
    workout_goals: list[str] = Field(..., min_length=1)
    equipment_available: str = Field(..., min_length=1)
    workout_frequency: int = Field(..., ge=1, le=7)
    workout_duration: int | None = None
    preferences: ProfilePreferences | None = None


class ProfileResponse(ResourceModel):
    id: int
    fitness_level: Difficulty
    workout_goals: list[str]
    equipment_available: str
    preferences: ProfilePreferences | None = None


class CompletionRequest(ResourceModel):
    completed_at: str | None = None
    duration_minutes: int | None = None
    rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = None
