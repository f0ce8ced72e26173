"""Public entry point for settings resolution."""

import logging
from typing import Any

from pydantic import ValidationError

from resilient_json.exceptions import ConfigurationError

from .schema import DecoderSettings
from .scope import get_ambient_settings

log = logging.getLogger(__name__)


def resolve_settings(programmatic: dict[str, Any] | None = None) -> DecoderSettings:
    """Resolve decoder settings with proper precedence.

    Precedence: Programmatic > Ambient scope > Environment > Defaults. When a
    `settings_scope` is active its settings stand in for environment and
    defaults.

    Args:
        programmatic: Field overrides. Unknown keys are ignored.

    Returns:
        A frozen `DecoderSettings`.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    ambient = get_ambient_settings()
    try:
        if ambient is not None:
            return ambient.with_overrides(**programmatic) if programmatic else ambient
        return DecoderSettings(**(programmatic or {}))
    except ValidationError as e:
        log.debug("Settings validation failed: %s", e)
        raise ConfigurationError(f"Invalid decoder settings: {e}") from e
