"""Configuration management using pydantic-settings."""

from typing import Any

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class TypeCoercionRules(BaseModel):
    """Which loosely-typed scalars the validator may convert."""

    numeric_strings: bool = True  # "123" -> 123
    boolean_strings: bool = True  # "true" -> True
    empty_string_to_null: bool = True  # "" -> None
    array_item_validation: bool = True  # validate/coerce array items


class ClientSettings(BaseSettings):
    """Process-wide defaults for the compliant API client."""

    model_config = SettingsConfigDict(
        env_prefix="COMPLIANT_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    base_url: str = "http://localhost/wp-json/fitcopilot/v1"

    # Transport
    timeout: float = 180.0  # seconds, matches the backend generation timeout
    retries: int = 3
    backoff_factor: float = 1.0  # delay before retry n = backoff_factor * 2 ** (n - 1)

    # Pipeline defaults
    validate_by_default: bool = True
    validate_responses: bool = False
    transform_field_names_by_default: bool = True
    type_coercion: TypeCoercionRules = TypeCoercionRules()

    # Credentials (the token itself is supplied by the host at runtime)
    credential_header: str = "X-WP-Nonce"
    credential: str | None = None

    log_level: str = "INFO"

    def with_overrides(self, **overrides: Any) -> "ClientSettings":
        """Return a copy with the given fields replaced; self is left untouched."""
        return self.model_copy(update=overrides)


# Global settings instance
settings = ClientSettings()
