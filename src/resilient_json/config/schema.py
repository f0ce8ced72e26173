"""Decoder settings schema and validation using Pydantic.

Validates and coerces settings from the environment (``RESILIENT_JSON_*``)
and programmatic overrides into a frozen settings object with defaults.
"""

import logging
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from resilient_json.constants import (
    DEFAULT_FALLBACK_LOG_LEVEL,
    ENV_PREFIX,
    MAX_REPAIR_INPUT_SIZE,
)


class DecoderSettings(BaseSettings):
    """Pydantic settings schema for the structured decoder.

    Instances are immutable; use `with_overrides` to derive a variant.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,
        case_sensitive=False,
        extra="ignore",  # Unknown keys and env vars are dropped
        frozen=True,
    )

    max_repair_input_size: int = Field(
        default=MAX_REPAIR_INPUT_SIZE,
        description="Inputs longer than this skip the repair and recovery stages",
        ge=1,
    )

    enable_aggressive: bool = Field(
        default=True,
        description="Run the lossy recovery stage before falling back",
    )

    require_container: bool = Field(
        default=False,
        description="Treat decoded scalars (numbers, strings, ...) as failures",
    )

    enable_diagnostics: bool = Field(
        default=False,
        description="Attach per-stage diagnostics to decode outcomes",
    )

    fallback_log_level: str = Field(
        default=DEFAULT_FALLBACK_LOG_LEVEL,
        description="Log level used by the default diagnostic sink",
    )

    @field_validator("fallback_log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v: Any) -> str:
        """Accept level names case-insensitively."""
        if isinstance(v, str):
            normalized = v.strip().upper()
            if normalized in logging.getLevelNamesMapping():
                return normalized
        raise ValueError(
            f"Invalid fallback_log_level: {v!r}. "
            "Must be a logging level name such as WARNING or DEBUG"
        )

    def with_overrides(self, **overrides: Any) -> "DecoderSettings":
        """Return a validated copy with ``overrides`` applied."""
        return type(self)(**{**self.to_dict(), **overrides})

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return self.model_dump()
