"""Module-level convenience functions.

Each call builds a `StructuredDecoder` from the settings in effect at call
time (environment, or an enclosing `settings_scope`), so these functions keep
no state between calls. Build a `StructuredDecoder` yourself to reuse
settings or inject a custom sink.
"""

import logging
from typing import Any

from resilient_json.config import DecoderSettings, resolve_settings
from resilient_json.decoding import StructuredDecoder, coerce_text
from resilient_json.decoding import extract_candidate as _extract_candidate
from resilient_json.diagnostics import DiagnosticSink
from resilient_json.exceptions import ConfigurationError

log = logging.getLogger(__name__)


def _decoder(sink: DiagnosticSink | None = None) -> StructuredDecoder:
    try:
        settings = resolve_settings()
    except ConfigurationError as e:
        log.error("Ignoring invalid decoder settings, using defaults: %s", e)
        settings = DecoderSettings.model_construct()
    return StructuredDecoder(settings=settings, sink=sink)


def extract_candidate(text: Any) -> str | None:
    """Return the best-guess JSON span in ``text``, or None if there is none."""
    return _extract_candidate(coerce_text(text))


def decode_with_default[T](
    text: Any,
    fallback: T,
    context: str | None = None,
    *,
    sink: DiagnosticSink | None = None,
) -> T:
    """Decode ``text`` through the full attempt chain.

    Never raises. Returns ``fallback`` itself when every attempt fails; if
    ``context`` is given the failure is also reported to ``sink`` (a logging
    sink by default).

    Example:
        tasks = decode_with_default(response_text, [], "generate_tasks")
    """
    return _decoder(sink).decode_with_default(text, fallback, context)


def safe_parse[T](text: Any, fallback: T) -> T:
    """Decode ``text`` through the attempt chain without any failure signal."""
    return _decoder().decode_with_default(text, fallback)


def parse_with_default[T](
    text: Any,
    fallback: T,
    context: str | None = None,
    *,
    sink: DiagnosticSink | None = None,
) -> T:
    """Extract a candidate span first, then decode it.

    Falls back immediately when ``text`` holds no fence and no opening
    bracket, reporting ``"No JSON found in response"`` for labelled calls.
    """
    return _decoder(sink).decode_candidate(text, fallback, context).value
