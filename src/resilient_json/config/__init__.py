"""Configuration for the structured decoder.

Key components:
- DecoderSettings: frozen, validated settings (env prefix ``RESILIENT_JSON_``)
- resolve_settings: programmatic > scope > environment > defaults
- settings_scope / settings_override: contextvar-based scoped overrides
"""

from .api import resolve_settings
from .schema import DecoderSettings
from .scope import get_ambient_settings, settings_override, settings_scope

__all__ = [  # noqa: RUF022
    "DecoderSettings",
    "resolve_settings",
    "settings_scope",
    "settings_override",
    "get_ambient_settings",
]
