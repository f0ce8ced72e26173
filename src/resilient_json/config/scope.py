"""Settings scoping for entry-time overrides.

`settings_scope` changes what `resolve_settings()` returns inside a ``with``
block. A decoder captures its settings when it is constructed, so decoders
built before the scope are not affected.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .schema import DecoderSettings

_ambient_settings: contextvars.ContextVar[DecoderSettings] = contextvars.ContextVar(
    "resilient_json_settings"
)


def get_ambient_settings() -> DecoderSettings | None:
    """Return the settings set by an enclosing scope, or None."""
    try:
        return _ambient_settings.get()
    except LookupError:
        return None


@contextmanager
def settings_scope(settings: DecoderSettings) -> Generator[None]:
    """Temporarily use ``settings`` for `resolve_settings()` calls.

    Example:
        strict = resolve_settings({"require_container": True})
        with settings_scope(strict):
            value = decode_with_default(text, {})
    """
    token = _ambient_settings.set(settings)
    try:
        yield
    finally:
        _ambient_settings.reset(token)


@contextmanager
def settings_override(**overrides: Any) -> Generator[None]:
    """Apply ``overrides`` on top of the currently resolved settings."""
    # Imported lazily; api imports this module
    from .api import resolve_settings

    with settings_scope(resolve_settings(overrides)):
        yield
