from __future__ import annotations

from copy import deepcopy
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from twig.config.constants import FULL_COMMIT_ID_LENGTH, MIN_COMMIT_PREFIX_LENGTH


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge updates into base without mutating inputs.

    - Keys present in updates with non-None values are merged/overwritten
    - Keys present in updates with None values are skipped (preserve base value)
    - Keys not present in updates are preserved from base
    """
    result = deepcopy(base)
    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif key in result and value is None:
            continue
        else:
            result[key] = value
    return result


class TwigConfig(BaseModel):
    default_branch: str = "master"
    initial_commit_message: str = "initial commit"
    commit_id_display_length: int = Field(
        default=6, ge=MIN_COMMIT_PREFIX_LENGTH, le=FULL_COMMIT_ID_LENGTH
    )
    reserved_paths: list[str] = Field(
        default_factory=lambda: [".twig/", ".gitignore", "Makefile"]
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_format: Literal["pretty", "json"] = "pretty"
    log_colors: bool = True

    model_config = ConfigDict(extra="ignore")

    @field_validator("default_branch")
    @classmethod
    def check_branch_name(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("Branch name must be non-empty and contain no spaces")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ConfigValidationError(Exception):
    """Structured configuration validation error."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration using the pydantic schema.

    Raises:
        ConfigValidationError: With structured list of human-readable error messages.
    """
    try:
        return TwigConfig.model_validate(config).model_dump(mode="json")
    except ValidationError as e:
        raise ConfigValidationError(_extract_validation_errors(e)) from e


def _extract_validation_errors(exc: ValidationError) -> list[str]:
    """Convert pydantic ValidationError to list of human-readable messages."""
    errors = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "config"
        msg = err["msg"]

        # Strip pydantic's "Value error, " prefix from our custom messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]

        if err["type"] == "string_type":
            errors.append(f"Expected string at '{loc}'")
        elif err["type"] in ("int_type", "int_parsing"):
            errors.append(f"Expected integer at '{loc}'")
        elif err["type"] in ("bool_type", "bool_parsing"):
            errors.append(f"Expected boolean at '{loc}'")
        elif err["type"] == "list_type":
            errors.append(f"Expected list at '{loc}'")
        else:
            errors.append(f"{loc}: {msg}")

    return errors if errors else ["Invalid configuration"]
